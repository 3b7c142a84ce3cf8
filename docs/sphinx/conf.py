# Copyright 2024 ArchML Contributors
# SPDX-License-Identifier: Apache-2.0

"""Sphinx configuration for the modeldesc documentation."""

import pathlib
import sys

sys.path.insert(0, str(pathlib.Path(__file__).resolve().parents[2] / "src"))

project = "modeldesc"
author = "ArchML Contributors"
release = "0.1.0"

# Docstrings follow the Google style.
extensions: list[str] = ["sphinx.ext.autodoc", "sphinx.ext.napoleon"]
autodoc_member_order = "bysource"

html_theme = "alabaster"

#!/usr/bin/env python3
# Copyright 2026 ArchML Contributors
# SPDX-License-Identifier: Apache-2.0

"""Run the CI checks of modeldesc locally.

Usage: ``tools/ci.py [STEP ...]``. Without arguments every step runs; with
arguments only the steps whose key is listed run, e.g. ``tools/ci.py lint tests``.
"""

import subprocess
import sys
import tempfile
import time
from pathlib import Path

from yachalk import chalk

# ###############
# Public Interface
# ###############

# Key, title and command of every step, in run order.
STEPS: list[tuple[str, str, list[str]]] = [
    ("format", "Format check", ["uv", "run", "ruff", "format", "--check", "src/", "tests/"]),
    ("lint", "Lint", ["uv", "run", "ruff", "check", "src/", "tests/"]),
    ("types", "Type check", ["uv", "run", "ty", "check", "src/"]),
    ("registries", "Schema registries", ["uv", "run", "pytest", "-q", "tests/schema/"]),
    ("tests", "Tests", ["uv", "run", "pytest", "--cov=modeldesc", "--cov-report=term-missing"]),
    ("cli", "CLI smoke test", ["uv", "run", "modeldesc", "versions"]),
    ("build", "Build", ["uv", "build"]),
]

_SEPARATOR = "=" * 60


def main(argv: list[str]) -> int:
    """Run the selected CI steps, then the upgrade smoke test, and print a summary."""
    unknown = [key for key in argv if key not in {step[0] for step in STEPS} | {"upgrade"}]
    if unknown:
        print(chalk.red(f"Unknown step(s): {', '.join(unknown)}"), file=sys.stderr)
        return 2

    results: list[tuple[str, bool, float]] = []
    for key, title, cmd in STEPS:
        if argv and key not in argv:
            continue
        results.append(_run(title, cmd))
    if not argv or "upgrade" in argv:
        results.append(_run_upgrade_smoke_test())

    _print_header("Summary")
    for title, passed, elapsed in results:
        color = chalk.green if passed else chalk.red
        print(color(f"  {'PASS' if passed else 'FAIL'}  {title} ({elapsed:.1f}s)"))
    print()
    return 0 if all(passed for _, passed, _ in results) else 1


# ################
# Implementation
# ################

_REPO_ROOT = Path(__file__).resolve().parent.parent

# A version 1 model document without any entity; upgrading it exercises the
# full import and export path of the root document.
_V1_MODEL = """\
version: 1
owner: admin
cloud: lxd
config: {}
sequences: {}
users: {version: 1, users: []}
machines: {version: 1, machines: []}
applications: {version: 1, applications: []}
relations: {version: 1, relations: []}
ssh-host-keys: {version: 1, ssh-host-keys: []}
cloud-image-metadata: {version: 1, cloudimagemetadata: []}
actions: {version: 1, actions: []}
ip-addresses: {version: 1, ip-addresses: []}
spaces: {version: 1, spaces: []}
subnets: {version: 1, subnets: []}
link-layer-devices: {version: 1, link-layer-devices: []}
volumes: {version: 1, volumes: []}
filesystems: {version: 1, filesystems: []}
storages: {version: 1, storages: []}
storage-pools: {version: 1, pools: []}
"""


def _print_header(title: str) -> None:
    print(f"\n{chalk.blue(_SEPARATOR)}")
    print(chalk.blue(title))
    print(chalk.blue(_SEPARATOR))


def _run(title: str, cmd: list[str]) -> tuple[str, bool, float]:
    _print_header(title)
    start = time.monotonic()
    proc = subprocess.run(cmd, cwd=_REPO_ROOT)
    return title, proc.returncode == 0, time.monotonic() - start


def _run_upgrade_smoke_test() -> tuple[str, bool, float]:
    with tempfile.TemporaryDirectory() as tmp:
        source = Path(tmp) / "v1.yaml"
        source.write_text(_V1_MODEL, encoding="utf-8")
        title, passed, elapsed = _run(
            "Upgrade smoke test",
            ["uv", "run", "modeldesc", "upgrade", str(source), "-o", str(Path(tmp) / "current.yaml")],
        )
    return title, passed, elapsed


if __name__ == "__main__":
    sys.exit(main(sys.argv[1:]))

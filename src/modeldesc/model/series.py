# Copyright 2026 ArchML Contributors
# SPDX-License-Identifier: Apache-2.0

"""Mapping from legacy series names to operating system bases.

Older documents identify an operating system by a series name such as
``trusty``; current documents use a base of the form ``<os>@<version>``.
"""

from __future__ import annotations

from modeldesc.errors import NotValidError

# ###############
# Public Interface
# ###############

SERIES_BASES: dict[str, tuple[str, str]] = {
    "precise": ("ubuntu", "12.04"),
    "quantal": ("ubuntu", "12.10"),
    "raring": ("ubuntu", "13.04"),
    "saucy": ("ubuntu", "13.10"),
    "trusty": ("ubuntu", "14.04"),
    "utopic": ("ubuntu", "14.10"),
    "vivid": ("ubuntu", "15.04"),
    "wily": ("ubuntu", "15.10"),
    "xenial": ("ubuntu", "16.04"),
    "yakkety": ("ubuntu", "16.10"),
    "zesty": ("ubuntu", "17.04"),
    "artful": ("ubuntu", "17.10"),
    "bionic": ("ubuntu", "18.04"),
    "cosmic": ("ubuntu", "18.10"),
    "disco": ("ubuntu", "19.04"),
    "eoan": ("ubuntu", "19.10"),
    "focal": ("ubuntu", "20.04"),
    "groovy": ("ubuntu", "20.10"),
    "hirsute": ("ubuntu", "21.04"),
    "impish": ("ubuntu", "21.10"),
    "jammy": ("ubuntu", "22.04"),
    "kinetic": ("ubuntu", "22.10"),
    "lunar": ("ubuntu", "23.04"),
    "mantic": ("ubuntu", "23.10"),
    "noble": ("ubuntu", "24.04"),
    "centos7": ("centos", "7"),
    "centos8": ("centos", "8"),
    "centos9": ("centos", "9"),
    "genericlinux": ("genericlinux", "genericlinux"),
    "kubernetes": ("kubernetes", "kubernetes"),
}


def series_os(series: str) -> str:
    """Return the operating system name of ``series``."""
    return _lookup(series)[0]


def series_version(series: str) -> str:
    """Return the operating system version of ``series``, e.g. ``14.04`` for ``trusty``."""
    return _lookup(series)[1]


def base_from_series(series: str) -> str:
    """Return the base string ``<os>@<version>`` of ``series``.

    Raises:
        NotValidError: If the series is unknown.
    """
    try:
        os_name, version = _lookup(series)
    except NotValidError:
        raise NotValidError(f'base series "{series}" not valid') from None
    return f"{os_name.lower()}@{version}"


# ################
# Implementation
# ################


def _lookup(series: str) -> tuple[str, str]:
    try:
        return SERIES_BASES[series]
    except KeyError:
        raise NotValidError(f'series "{series}" not valid') from None

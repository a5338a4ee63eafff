#!/usr/bin/env python3
"""
Canonical Record

The resolved form of an operating system label: vendor, product, release,
editions and service channel. Records are immutable; rendering expands a
record into one display line per edition.

Usage:
    record.to_strings()
    # ['Microsoft Windows 11 Enterprise 24H2', ...]
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple

VENDOR = "Microsoft"


class OSFamily(Enum):
    """One member per product family recognizer"""
    WINDOWS_11 = "windows_11"
    WINDOWS_10 = "windows_10"
    WINDOWS_8 = "windows_8"
    WINDOWS_7 = "windows_7"
    WINDOWS_VISTA = "windows_vista"
    WINDOWS_XP = "windows_xp"
    WINDOWS_SERVER_SEMI_ANNUAL = "windows_server_semi_annual"
    WINDOWS_SERVER_2019FF = "windows_server_2019ff"
    WINDOWS_SERVER_2016 = "windows_server_2016"
    WINDOWS_SERVER_2012_R2 = "windows_server_2012_r2"
    WINDOWS_SERVER_2012 = "windows_server_2012"
    WINDOWS_SERVER_2008_R2 = "windows_server_2008_r2"
    WINDOWS_SERVER_2008 = "windows_server_2008"
    WINDOWS_SERVER_2003 = "windows_server_2003"
    WINDOWS_2000 = "windows_2000"


class Edition(Enum):
    """Base for the per-family edition enumerations; values are display names."""

    @property
    def display_name(self) -> str:
        return self.value

    def __str__(self):
        return self.value


class ServiceChannel(Enum):
    """
    Base for the per-family service channel enumerations.

    Members are declared as ``(label, is_default, is_long_term)``. Default
    channels are not rendered in display strings.
    """

    def __init__(self, label: str, is_default: bool, is_long_term: bool):
        self.label = label
        self.is_default = is_default
        self.is_long_term = is_long_term

    def __str__(self):
        return self.label


@dataclass(frozen=True)
class CanonicalRecord:
    family: OSFamily
    vendor: str
    product: str
    release: Optional[str]
    editions: Tuple[Edition, ...]
    service_channel: ServiceChannel

    def __post_init__(self):
        if not isinstance(self.editions, tuple):
            object.__setattr__(self, 'editions', tuple(self.editions))

    def _render(self, edition: Optional[Edition]) -> str:
        parts = [self.vendor, self.product]
        if edition is not None:
            parts.append(edition.display_name)
        if self.release:
            parts.append(self.release)
        if not self.service_channel.is_default:
            parts.append(self.service_channel.label)
        return " ".join(parts)

    def to_strings(self) -> List[str]:
        """
        One display line per edition. A record without editions (e.g. an
        edition-less IoT product) renders a single line without one.
        """
        if not self.editions:
            return [self._render(None)]
        return [self._render(edition) for edition in self.editions]

    def to_dict(self) -> Dict[str, Any]:
        return {
            'family': self.family.value,
            'vendor': self.vendor,
            'product': self.product,
            'release': self.release,
            'editions': [edition.display_name for edition in self.editions],
            'service_channel': self.service_channel.label,
            'display_names': self.to_strings(),
        }

#!/usr/bin/env python3
"""
Resolution error kinds and exceptions.

Recognizers raise RecognizerError, which the dispatcher absorbs while it keeps
trying lower-precedence families. Only UnknownOperatingSystemError leaves the
resolution core; it keeps every per-family attempt for diagnostics.
"""

from enum import Enum
from typing import List, Optional, Sequence


class ResolutionErrorKind(Enum):
    """Closed set of reasons a label can fail to resolve"""
    DISCRIMINATOR_MISMATCH = "discriminator_mismatch"
    MALFORMED_LABEL = "malformed_label"
    UNRECOGNIZED_FIELD = "unrecognized_field"
    UNRESOLVED_FIELD = "unresolved_field"
    UNKNOWN_BUILD = "unknown_build"
    UNKNOWN_OPERATING_SYSTEM = "unknown_operating_system"


class OSIdentifierError(Exception):
    """Base class for every error raised by the OS identifier"""
    pass


class RecognizerError(OSIdentifierError):
    """A single product family rejected a label."""

    def __init__(self, kind: ResolutionErrorKind, family: str, reason: str, label: str,
                 field: Optional[str] = None, value: Optional[str] = None):
        self.kind = kind
        self.family = family
        self.reason = reason
        self.label = label
        self.field = field
        self.value = value
        super().__init__(f"{family}: {reason} ({label!r})")


class UnknownBuildError(OSIdentifierError):
    """A build number is absent from a release table."""

    def __init__(self, build: str, table: str):
        self.build = build
        self.table = table
        super().__init__(f"Unknown build {build} in {table} release table")


class UnknownOperatingSystemError(OSIdentifierError):
    """No recognizer accepted the label."""

    kind = ResolutionErrorKind.UNKNOWN_OPERATING_SYSTEM

    def __init__(self, label: str, attempts: Sequence[RecognizerError] = ()):
        self.label = label
        self.attempts: List[RecognizerError] = list(attempts)
        super().__init__(f'Unknown operating system: "{label}"')

    def attempts_of_kind(self, kind: ResolutionErrorKind) -> List[RecognizerError]:
        return [attempt for attempt in self.attempts if attempt.kind is kind]

    def build_failures(self) -> List[RecognizerError]:
        """Attempts that failed only because an embedded build number is unknown"""
        return self.attempts_of_kind(ResolutionErrorKind.UNKNOWN_BUILD)


class BuildIndexError(OSIdentifierError):
    """A release table could not be loaded"""
    pass


class ReleaseTableValidationError(BuildIndexError):
    """Raised when a release table fails schema validation"""
    pass

#!/usr/bin/env python3
"""
Label Classifier

Decides from surface syntax alone whether an input follows the structured
grammar (fields separated only by ``-``) or is free text, and returns the
matching token view over the same string.

Usage:
    label = classify_label("11-24h2-e")
    label.is_structured   # True
    label.tokens          # ('11', '24h2', 'e')
"""

from dataclasses import dataclass
from typing import Optional, Tuple, Union

LABEL_DELIMITER = '-'
FORBIDDEN_SEPARATORS = frozenset(' _,;./\\:|+')


@dataclass(frozen=True)
class StructuredLabel:
    """A label whose fields are encoded by position between delimiters."""
    raw: str
    tokens: Tuple[str, ...]

    is_structured = True


@dataclass(frozen=True)
class FreeTextLabel:
    """Any label that is not structured; fields are found by keyword search."""
    raw: str

    is_structured = False

    @property
    def single_token(self) -> Optional[str]:
        """The raw value when it is one bare token such as ``2019`` or ``8.1``."""
        value = self.raw
        if not value or LABEL_DELIMITER in value or any(ch.isspace() for ch in value):
            return None
        return value


Label = Union[StructuredLabel, FreeTextLabel]


def is_structured_label(value: str) -> bool:
    if not value:
        return False
    if any(ch in FORBIDDEN_SEPARATORS for ch in value):
        return False
    return len(value.split(LABEL_DELIMITER)) > 1


def classify_label(value: str) -> Label:
    """Classify ``value``; never fails, anything not structured is free text."""
    if is_structured_label(value):
        return StructuredLabel(raw=value, tokens=tuple(value.split(LABEL_DELIMITER)))
    return FreeTextLabel(raw=value)

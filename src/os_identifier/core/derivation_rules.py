#!/usr/bin/env python3
"""
Channel and edition derivation rules.

Pure functions shared by the recognizers:
- inference of a service channel from the release label alone
- the explicit fallback to a family default when inference yields nothing
- reconciliation of a requested long-term channel against the release era
- expansion of edition-group selector codes
"""

from typing import Mapping, Optional, Sequence, Tuple, TypeVar

from .canonical_record import Edition, ServiceChannel

C = TypeVar('C', bound=ServiceChannel)

SEMI_ANNUAL_SUFFIX = "H1"


def is_semi_annual_release(release: Optional[str]) -> bool:
    """Half-year releases published in the first half (``21H1``) follow the semi-annual channel."""
    return bool(release) and release.upper().endswith(SEMI_ANNUAL_SUFFIX)


def infer_channel_from_release(release: Optional[str], semi_annual: C) -> Optional[C]:
    """The semi-annual channel for an ``H1`` release, otherwise None."""
    if is_semi_annual_release(release):
        return semi_annual
    return None


def channel_or_default(inferred: Optional[C], default: C) -> C:
    return inferred if inferred is not None else default


def release_at_or_before(release: str, cutoff: str) -> bool:
    """Release labels of one family share a width, so string order is release order."""
    return release.upper() <= cutoff.upper()


def reconcile_channel(release: str, requested: C, *, semi_annual: C,
                      legacy_long_term: C, long_term: C, cutoff: str) -> C:
    """
    Reconcile an explicitly requested channel with the release.

    Semi-annual releases always stay semi-annual. A long-term request on a
    release up to ``cutoff`` keeps the older long-term name; every other
    case resolves to the current long-term name.
    """
    if is_semi_annual_release(release):
        return semi_annual
    if requested.is_long_term and release_at_or_before(release, cutoff):
        return legacy_long_term
    return long_term


def expand_edition_group(code: str, groups: Mapping[str, Sequence[Edition]]) -> Optional[Tuple[Edition, ...]]:
    """Editions selected by a group code (case-insensitive), None for an unknown code."""
    editions = groups.get(code.lower())
    return tuple(editions) if editions is not None else None

#!/usr/bin/env python3
"""
Version Dispatcher

Tries every product family recognizer against a label in a fixed precedence
order and returns the first success. Structured grammars overlap between
families (``2019`` could be a semi-annual release or a server year), so the
newer and more specific families are always tried first.

Usage:
    from src.os_identifier.core.version_dispatcher import resolve, identify

    record = resolve("11-24h2-e")
    identify("Microsoft Windows 11 Enterprise 21H2")
    # ['Microsoft Windows 11 Enterprise 21H2']
"""

from dataclasses import dataclass
from typing import Dict, List, Mapping, Optional, Tuple, Type

from .canonical_record import CanonicalRecord, OSFamily
from .label_classifier import Label, classify_label
from .resolution_errors import RecognizerError, UnknownOperatingSystemError
from ..logging.workflow_logger import get_logger
from ..recognizers.base_recognizer import ProductRecognizer
from ..recognizers.windows_client import Windows10Recognizer, Windows11Recognizer
from ..recognizers.windows_legacy import (
    Windows2000Recognizer,
    Windows7Recognizer,
    Windows8Recognizer,
    WindowsVistaRecognizer,
    WindowsXPRecognizer,
)
from ..recognizers.windows_server import (
    WindowsServer2003Recognizer,
    WindowsServer2008R2Recognizer,
    WindowsServer2008Recognizer,
    WindowsServer2012R2Recognizer,
    WindowsServer2012Recognizer,
    WindowsServer2016Recognizer,
    WindowsServer2019ffRecognizer,
    WindowsServerSemiAnnualRecognizer,
)
from ..storage.build_index_manager import (
    WINDOWS_10_TABLE,
    WINDOWS_11_TABLE,
    WINDOWS_SERVER_SEMI_ANNUAL_TABLE,
    WINDOWS_SERVER_TABLE,
    BuildIndex,
    get_global_build_index_manager,
)

logger = get_logger()

# Newest clients, older clients, servers newest first, then Windows 2000.
FAMILY_PRECEDENCE: Tuple[OSFamily, ...] = (
    OSFamily.WINDOWS_11,
    OSFamily.WINDOWS_10,
    OSFamily.WINDOWS_8,
    OSFamily.WINDOWS_7,
    OSFamily.WINDOWS_VISTA,
    OSFamily.WINDOWS_XP,
    OSFamily.WINDOWS_SERVER_SEMI_ANNUAL,
    OSFamily.WINDOWS_SERVER_2019FF,
    OSFamily.WINDOWS_SERVER_2016,
    OSFamily.WINDOWS_SERVER_2012_R2,
    OSFamily.WINDOWS_SERVER_2012,
    OSFamily.WINDOWS_SERVER_2008_R2,
    OSFamily.WINDOWS_SERVER_2008,
    OSFamily.WINDOWS_SERVER_2003,
    OSFamily.WINDOWS_2000,
)

# family -> (recognizer class, release table it resolves builds against)
RECOGNIZERS: Dict[OSFamily, Tuple[Type[ProductRecognizer], Optional[str]]] = {
    OSFamily.WINDOWS_11: (Windows11Recognizer, WINDOWS_11_TABLE),
    OSFamily.WINDOWS_10: (Windows10Recognizer, WINDOWS_10_TABLE),
    OSFamily.WINDOWS_8: (Windows8Recognizer, None),
    OSFamily.WINDOWS_7: (Windows7Recognizer, None),
    OSFamily.WINDOWS_VISTA: (WindowsVistaRecognizer, None),
    OSFamily.WINDOWS_XP: (WindowsXPRecognizer, None),
    OSFamily.WINDOWS_SERVER_SEMI_ANNUAL: (WindowsServerSemiAnnualRecognizer, WINDOWS_SERVER_SEMI_ANNUAL_TABLE),
    OSFamily.WINDOWS_SERVER_2019FF: (WindowsServer2019ffRecognizer, WINDOWS_SERVER_TABLE),
    OSFamily.WINDOWS_SERVER_2016: (WindowsServer2016Recognizer, WINDOWS_SERVER_TABLE),
    OSFamily.WINDOWS_SERVER_2012_R2: (WindowsServer2012R2Recognizer, WINDOWS_SERVER_TABLE),
    OSFamily.WINDOWS_SERVER_2012: (WindowsServer2012Recognizer, WINDOWS_SERVER_TABLE),
    OSFamily.WINDOWS_SERVER_2008_R2: (WindowsServer2008R2Recognizer, WINDOWS_SERVER_TABLE),
    OSFamily.WINDOWS_SERVER_2008: (WindowsServer2008Recognizer, WINDOWS_SERVER_TABLE),
    OSFamily.WINDOWS_SERVER_2003: (WindowsServer2003Recognizer, WINDOWS_SERVER_TABLE),
    OSFamily.WINDOWS_2000: (Windows2000Recognizer, None),
}


@dataclass(frozen=True)
class ResolutionOutcome:
    """Result of resolving one label without raising"""
    label: Label
    record: Optional[CanonicalRecord] = None
    error: Optional[UnknownOperatingSystemError] = None

    @property
    def resolved(self) -> bool:
        return self.record is not None


def check_precedence(precedence, recognizers) -> None:
    """Every family appears exactly once in the precedence and has a recognizer."""
    missing = set(OSFamily) - set(precedence)
    duplicated = {family for family in precedence if precedence.count(family) > 1}
    unmapped = set(precedence) - set(recognizers)
    if missing or duplicated or unmapped:
        raise RuntimeError(
            "Inconsistent recognizer precedence: "
            f"missing={sorted(f.value for f in missing)}, "
            f"duplicated={sorted(f.value for f in duplicated)}, "
            f"unmapped={sorted(f.value for f in unmapped)}"
        )


class VersionDispatcher:
    """
    Ordered scan over the product family recognizers.

    Build indexes are injected by table name; by default they come from the
    global build index manager, which loads the packaged release tables.
    """

    def __init__(self, build_indexes: Optional[Mapping[str, BuildIndex]] = None,
                 precedence: Tuple[OSFamily, ...] = FAMILY_PRECEDENCE):
        check_precedence(precedence, RECOGNIZERS)
        if build_indexes is None:
            build_indexes = get_global_build_index_manager().get_indexes()

        self.precedence = precedence
        self.recognizers: List[ProductRecognizer] = []
        for family in precedence:
            recognizer_class, table = RECOGNIZERS[family]
            if table is None:
                self.recognizers.append(recognizer_class())
            else:
                self.recognizers.append(recognizer_class(build_indexes.get(table)))

    def try_resolve(self, value: str) -> ResolutionOutcome:
        label = classify_label(value.strip())
        logger.debug(f"Classified {value!r} as {'structured' if label.is_structured else 'free-text'}",
                     group="LABEL_PARSE")

        attempts: List[RecognizerError] = []
        for recognizer in self.recognizers:
            try:
                record = recognizer.recognize(label)
            except RecognizerError as e:
                attempts.append(e)
                logger.debug(f"{recognizer.family.value} rejected {value!r}: {e.kind.value}: {e.reason}",
                             group="DISPATCH")
                continue
            logger.debug(f"Resolved {value!r} as {record.family.value}", group="DISPATCH")
            return ResolutionOutcome(label=label, record=record)

        return ResolutionOutcome(label=label, error=UnknownOperatingSystemError(value, attempts))

    def resolve(self, value: str) -> CanonicalRecord:
        """
        Resolve ``value`` to a canonical record.

        Raises:
            UnknownOperatingSystemError: If no family recognizes the label
        """
        outcome = self.try_resolve(value)
        if outcome.error is not None:
            raise outcome.error
        return outcome.record

    def identify(self, value: str) -> List[str]:
        """Resolve and render ``value`` (one display line per edition)."""
        return self.resolve(value).to_strings()


# Global dispatcher instance
_default_dispatcher = None


def get_default_dispatcher() -> VersionDispatcher:
    """Dispatcher over the packaged release tables, built on first use."""
    global _default_dispatcher
    if _default_dispatcher is None:
        _default_dispatcher = VersionDispatcher()
    return _default_dispatcher


def reset_default_dispatcher():
    global _default_dispatcher
    _default_dispatcher = None


def resolve(value: str) -> CanonicalRecord:
    return get_default_dispatcher().resolve(value)


def identify(value: str) -> List[str]:
    return get_default_dispatcher().identify(value)

#!/usr/bin/env python3
"""
Windows Server recognizers.

Structured labels:

    1709-sac, 20h2-ac      semi-annual / annual channel releases
    2019, 2022, 2025       2019 and later, product name carries the year
    2016[-<release>]
    2012-r2[-<release>], 2012[-<release>]
    2008-r2[-<release>], 2008[-<release>]
    2003[-r2][-<release>]

Free-text labels must name "Windows Server". The product year comes from
the text ("Windows Server 2012 R2 Standard") or, when absent, from an
embedded build number looked up in the server release table.
"""

import re
from typing import Optional, Tuple

from .base_recognizer import ProductRecognizer, edition_keyword_table
from ..core.canonical_record import CanonicalRecord, Edition, OSFamily, ServiceChannel
from ..core.keyword_matcher import find_number_with_digits, find_service_pack, match_first_keyword
from ..core.resolution_errors import ResolutionErrorKind, UnknownBuildError
from ..storage.build_index_manager import BuildIndex

SERVER_PRODUCT = "Windows Server"
R2_TOKEN = "r2"
FIRST_YEARLY_SERVER = "2019"
LAST_YEARLY_SERVER = "2999"
FIRST_SEMI_ANNUAL_RELEASE = "1709"

_SERVER_YEAR_PATTERN = re.compile(r'\bWindows\s+Server\s+(\d{4})(\s+R2)?\b', re.IGNORECASE)
_SEMI_ANNUAL_RELEASE_PATTERN = re.compile(r'^\d{2}(?:\d{2}|H[12])$')


class ServerEdition(Edition):
    DATACENTER = "Datacenter"
    ENTERPRISE = "Enterprise"
    ESSENTIALS = "Essentials"
    FOUNDATION = "Foundation"
    HPC = "HPC"
    STANDARD = "Standard"
    WEB = "Web"


class ServerChannel(ServiceChannel):
    LTSB = ("LTSB", True, True)
    LTSC = ("LTSC", True, True)
    AC = ("AC", False, False)
    SAC = ("SAC", False, False)


SEMI_ANNUAL_EDITIONS = {
    "ac": (ServerEdition.DATACENTER,),
    "sac": (ServerEdition.DATACENTER, ServerEdition.STANDARD),
}


class ServerRecognizer(ProductRecognizer):
    """
    Yearly server releases.

    ``year`` and ``r2`` identify the family; an optional trailing token is a
    service pack or update label taken verbatim (upper-cased).
    """

    year: str = ""
    r2: bool = False
    editions: Tuple[ServerEdition, ...] = ()
    edition_enum = ServerEdition
    channel_enum = ServerChannel
    default_channel = ServerChannel.LTSC
    product_phrases = (SERVER_PRODUCT,)
    accepts_single_token = True

    def __init__(self, build_index: Optional[BuildIndex] = None):
        self.build_index = build_index
        self.edition_keywords = edition_keyword_table(self.editions)
        base_tokens = 2 if self.r2 else 1
        self.min_tokens = base_tokens
        self.max_tokens = base_tokens + 1

    @property
    def product(self) -> str:
        suffix = " R2" if self.r2 else ""
        return f"{SERVER_PRODUCT} {self.year}{suffix}"

    def all_editions(self) -> Tuple[Edition, ...]:
        return tuple(self.editions)

    @staticmethod
    def _has_r2(tokens) -> bool:
        return len(tokens) > 1 and tokens[1].lower() == R2_TOKEN

    def matches_discriminator(self, tokens) -> bool:
        return tokens[0] == self.year and self._has_r2(tokens) == self.r2

    def from_tokens(self, tokens, raw) -> CanonicalRecord:
        release = tokens[self.min_tokens].upper() if len(tokens) > self.min_tokens else None
        return self.make_record(release, self.all_editions())

    # Free text

    def server_identity(self, text: str) -> Tuple[str, bool]:
        """(year, is_r2) named by the text or implied by its build number."""
        match = _SERVER_YEAR_PATTERN.search(text)
        if match:
            return match.group(1), bool(match.group(2))

        build = find_number_with_digits(text)
        if build is None or self.build_index is None:
            raise self.error(ResolutionErrorKind.UNRESOLVED_FIELD, "No Windows Server release in label", text,
                             field="release")
        try:
            return self.build_index.resolve_build(build), False
        except UnknownBuildError as e:
            raise self.error(ResolutionErrorKind.UNKNOWN_BUILD, str(e), text, field="release", value=build) from e

    def matches_identity(self, year: str, r2: bool) -> bool:
        return year == self.year and r2 == self.r2

    def from_free_text(self, text: str) -> CanonicalRecord:
        if not self.mentions_product(text):
            raise self.error(ResolutionErrorKind.DISCRIMINATOR_MISMATCH, f"Not {SERVER_PRODUCT}", text)
        year, r2 = self.server_identity(text)
        if not self.matches_identity(year, r2):
            raise self.error(ResolutionErrorKind.DISCRIMINATOR_MISMATCH, f"Not {self.product}", text,
                             field="discriminator", value=year)
        edition = self.extract_edition(text)
        return self.make_record(self.extract_release(text), (edition,))

    def extract_release(self, text: str) -> Optional[str]:
        service_pack = find_service_pack(text)
        return service_pack.upper() if service_pack else None


class WindowsServer2019ffRecognizer(ServerRecognizer):
    """Windows Server 2019 and every later yearly release."""

    family = OSFamily.WINDOWS_SERVER_2019FF
    editions = (ServerEdition.DATACENTER, ServerEdition.STANDARD)

    def __init__(self, build_index: Optional[BuildIndex] = None):
        super().__init__(build_index)
        self.min_tokens = 1
        self.max_tokens = 1

    @property
    def product(self) -> str:
        return f"{SERVER_PRODUCT} {FIRST_YEARLY_SERVER} and later"

    @staticmethod
    def is_yearly_release(year: str) -> bool:
        return len(year) == 4 and year.isdigit() and FIRST_YEARLY_SERVER <= year <= LAST_YEARLY_SERVER

    def matches_discriminator(self, tokens) -> bool:
        return self.is_yearly_release(tokens[0])

    def matches_identity(self, year: str, r2: bool) -> bool:
        return self.is_yearly_release(year) and not r2

    def _record(self, year: str, editions) -> CanonicalRecord:
        return self.make_record(None, editions, product=f"{SERVER_PRODUCT} {year}")

    def from_tokens(self, tokens, raw) -> CanonicalRecord:
        return self._record(tokens[0], self.all_editions())

    def from_free_text(self, text: str) -> CanonicalRecord:
        if not self.mentions_product(text):
            raise self.error(ResolutionErrorKind.DISCRIMINATOR_MISMATCH, f"Not {SERVER_PRODUCT}", text)
        year, r2 = self.server_identity(text)
        if not self.matches_identity(year, r2):
            raise self.error(ResolutionErrorKind.DISCRIMINATOR_MISMATCH, f"Not {self.product}", text,
                             field="discriminator", value=year)
        return self._record(year, (self.extract_edition(text),))


class WindowsServer2016Recognizer(ServerRecognizer):
    family = OSFamily.WINDOWS_SERVER_2016
    year = "2016"
    editions = (ServerEdition.DATACENTER, ServerEdition.ESSENTIALS, ServerEdition.STANDARD)
    default_channel = ServerChannel.LTSB


class WindowsServer2012R2Recognizer(ServerRecognizer):
    family = OSFamily.WINDOWS_SERVER_2012_R2
    year = "2012"
    r2 = True
    editions = (ServerEdition.DATACENTER, ServerEdition.ESSENTIALS, ServerEdition.FOUNDATION,
                ServerEdition.STANDARD)


class WindowsServer2012Recognizer(ServerRecognizer):
    family = OSFamily.WINDOWS_SERVER_2012
    year = "2012"
    editions = (ServerEdition.DATACENTER, ServerEdition.ESSENTIALS, ServerEdition.FOUNDATION,
                ServerEdition.STANDARD)


class WindowsServer2008R2Recognizer(ServerRecognizer):
    family = OSFamily.WINDOWS_SERVER_2008_R2
    year = "2008"
    r2 = True
    editions = (ServerEdition.DATACENTER, ServerEdition.ENTERPRISE, ServerEdition.FOUNDATION,
                ServerEdition.HPC, ServerEdition.STANDARD, ServerEdition.WEB)


class WindowsServer2008Recognizer(ServerRecognizer):
    family = OSFamily.WINDOWS_SERVER_2008
    year = "2008"
    editions = (ServerEdition.DATACENTER, ServerEdition.ENTERPRISE, ServerEdition.FOUNDATION,
                ServerEdition.STANDARD, ServerEdition.WEB)


class WindowsServer2003Recognizer(ServerRecognizer):
    """Server 2003 and 2003 R2 share one family: ``2003[-r2][-<release>]``."""

    family = OSFamily.WINDOWS_SERVER_2003
    year = "2003"
    editions = (ServerEdition.DATACENTER, ServerEdition.ENTERPRISE, ServerEdition.STANDARD,
                ServerEdition.WEB)

    def __init__(self, build_index: Optional[BuildIndex] = None):
        super().__init__(build_index)
        self.min_tokens = 1
        self.max_tokens = 3

    def matches_discriminator(self, tokens) -> bool:
        return tokens[0] == self.year

    def matches_identity(self, year: str, r2: bool) -> bool:
        return year == self.year

    def _product(self, r2: bool) -> str:
        return f"{SERVER_PRODUCT} {self.year} R2" if r2 else f"{SERVER_PRODUCT} {self.year}"

    def from_tokens(self, tokens, raw) -> CanonicalRecord:
        r2 = self._has_r2(tokens)
        rest = tokens[2:] if r2 else tokens[1:]
        if len(rest) > 1:
            raise self.error(ResolutionErrorKind.MALFORMED_LABEL,
                             f"{SERVER_PRODUCT} {self.year} labels take at most one release field", raw)
        release = rest[0].upper() if rest else None
        return self.make_record(release, self.all_editions(), product=self._product(r2))

    def from_free_text(self, text: str) -> CanonicalRecord:
        if not self.mentions_product(text):
            raise self.error(ResolutionErrorKind.DISCRIMINATOR_MISMATCH, f"Not {SERVER_PRODUCT}", text)
        year, r2 = self.server_identity(text)
        if not self.matches_identity(year, r2):
            raise self.error(ResolutionErrorKind.DISCRIMINATOR_MISMATCH, f"Not {self.product}", text,
                             field="discriminator", value=year)
        edition = self.extract_edition(text)
        return self.make_record(self.extract_release(text), (edition,), product=self._product(r2))


class WindowsServerSemiAnnualRecognizer(ProductRecognizer):
    """
    Semi-annual (SAC) and annual (AC) channel server releases from 1709 on.

    The channel decides the editions: AC shipped Datacenter only.
    """

    family = OSFamily.WINDOWS_SERVER_SEMI_ANNUAL
    product = SERVER_PRODUCT
    min_tokens = 2
    max_tokens = 2
    edition_enum = ServerEdition
    channel_enum = ServerChannel
    default_channel = ServerChannel.SAC
    product_phrases = (SERVER_PRODUCT,)
    channel_codes = {"ac": ServerChannel.AC, "sac": ServerChannel.SAC}
    channel_keywords = (
        (ServerChannel.SAC, ("Semi-Annual Channel", "SAC")),
        (ServerChannel.AC, ("Annual Channel", "AC")),
    )
    edition_keywords = edition_keyword_table((ServerEdition.DATACENTER, ServerEdition.STANDARD))

    def __init__(self, build_index: Optional[BuildIndex] = None):
        self.build_index = build_index

    @staticmethod
    def is_semi_annual_release(release: str) -> bool:
        release = release.upper()
        return bool(_SEMI_ANNUAL_RELEASE_PATTERN.match(release)) and release >= FIRST_SEMI_ANNUAL_RELEASE

    def matches_discriminator(self, tokens) -> bool:
        return (len(tokens) >= 2
                and tokens[-1].lower() in self.channel_codes
                and self.is_semi_annual_release(tokens[0]))

    def from_tokens(self, tokens, raw) -> CanonicalRecord:
        code = tokens[1].lower()
        channel = self.channel_codes[code]
        return self.make_record(tokens[0].upper(), SEMI_ANNUAL_EDITIONS[code], channel)

    def extract_release(self, text: str) -> Optional[str]:
        build = find_number_with_digits(text)
        if build is not None and self.build_index is not None:
            try:
                return self.build_index.resolve_build(build)
            except UnknownBuildError as e:
                raise self.error(ResolutionErrorKind.UNKNOWN_BUILD, str(e), text,
                                 field="release", value=build) from e
        release = self.build_index.identify_release(text) if self.build_index is not None else None
        if release is None:
            raise self.error(ResolutionErrorKind.UNRESOLVED_FIELD, "Not a semi-annual Windows Server release",
                             text, field="release")
        return release

    def from_free_text(self, text: str) -> CanonicalRecord:
        if not self.mentions_product(text):
            raise self.error(ResolutionErrorKind.DISCRIMINATOR_MISMATCH, f"Not {SERVER_PRODUCT}", text)
        channel = match_first_keyword(text, self.channel_keywords)
        if channel is None:
            raise self.error(ResolutionErrorKind.DISCRIMINATOR_MISMATCH,
                             "No semi-annual or annual channel named", text, field="service_channel")
        release = self.extract_release(text)
        edition = self.extract_edition(text)
        code = channel.label.lower()
        if edition not in SEMI_ANNUAL_EDITIONS[code]:
            raise self.error(ResolutionErrorKind.UNRECOGNIZED_FIELD,
                             f"{edition.display_name} did not ship on the {channel.label} channel", text,
                             field="edition", value=edition.display_name)
        return self.make_record(release, (edition,), channel)

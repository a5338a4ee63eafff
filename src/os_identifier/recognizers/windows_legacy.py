#!/usr/bin/env python3
"""
Legacy client recognizers: Windows 8/8.1, 7, Vista, XP and 2000.

These families only ever shipped service packs (and, for Windows 7, paid
extended security update years) after their initial release, so the
structured grammar is ``<discriminator>-<service pack>`` and every label
covers the full edition list of the family.

    8.1         Windows 8.1, all editions
    7-esu2      Windows 7 ESU2
    6-sp2       Windows Vista SP2
    5-sp1a      Windows XP SP1a
    2000-sp4    Windows 2000 SP4
"""

from typing import Dict, Optional

from .base_recognizer import ProductRecognizer, edition_keyword_table
from ..core.canonical_record import CanonicalRecord, Edition, OSFamily, ServiceChannel
from ..core.keyword_matcher import contains_any_word, find_service_pack
from ..core.resolution_errors import ResolutionErrorKind


class LegacyClientChannel(ServiceChannel):
    GAC = ("GAC", True, False)


class Windows8Edition(Edition):
    ENTERPRISE = "Enterprise"
    ENTERPRISE_N = "Enterprise N"
    N = "N"
    PRO_WITH_MEDIA_CENTER = "Pro with Media Center"
    PROFESSIONAL = "Professional"
    PROFESSIONAL_N = "Professional N"
    SL = "SL"


class Windows7Edition(Edition):
    ENTERPRISE = "Enterprise"
    ENTERPRISE_N = "Enterprise N"
    HOME_BASIC = "Home Basic"
    HOME_PREMIUM = "Home Premium"
    HOME_PREMIUM_N = "Home Premium N"
    PROFESSIONAL = "Professional"
    PROFESSIONAL_FOR_EMBEDDED_SYSTEMS = "Professional for Embedded Systems"
    PROFESSIONAL_N = "Professional N"
    STARTER = "Starter"
    STARTER_N = "Starter N"
    ULTIMATE = "Ultimate"
    ULTIMATE_FOR_EMBEDDED_SYSTEMS = "Ultimate for Embedded Systems"
    ULTIMATE_N = "Ultimate N"


class WindowsVistaEdition(Edition):
    BUSINESS = "Business"
    BUSINESS_N = "Business N"
    BUSINESS_N_64_BIT = "Business N 64-bit"
    ENTERPRISE = "Enterprise"
    ENTERPRISE_64_BIT = "Enterprise 64-bit"
    ENTERPRISE_X64 = "Enterprise X64"
    HOME_BASIC = "Home Basic"
    HOME_BASIC_64_BIT = "Home Basic 64-bit"
    HOME_BASIC_N = "Home Basic N"
    HOME_BASIC_N_64_BIT = "Home Basic N 64-bit"
    HOME_PREMIUM = "Home Premium"
    HOME_PREMIUM_64_BIT = "Home Premium 64-bit"
    STARTER = "Starter"
    ULTIMATE = "Ultimate"
    ULTIMATE_64_BIT = "Ultimate 64-bit"


class WindowsXPEdition(Edition):
    HOME = "Home"
    PROFESSIONAL = "Professional"
    PROFESSIONAL_FOR_EMBEDDED_SYSTEMS = "Professional for Embedded Systems"
    PROFESSIONAL_X64 = "Professional x64"
    STARTER = "Starter"


class Windows2000Edition(Edition):
    PROFESSIONAL = "Professional"
    SERVER = "Server"
    ADVANCED_SERVER = "Advanced Server"
    DATACENTER_SERVER = "Datacenter Server"


class LegacyClientRecognizer(ProductRecognizer):
    """
    Families whose second token is a service pack from a closed list.

    ``releases`` maps the upper-cased token to its display form.
    """

    min_tokens = 2
    max_tokens = 2
    releases: Dict[str, str] = {}
    channel_enum = LegacyClientChannel
    default_channel = LegacyClientChannel.GAC

    def normalize_release(self, token: str, raw: str) -> str:
        release = self.releases.get(token.upper())
        if release is None:
            raise self.error(ResolutionErrorKind.UNRECOGNIZED_FIELD, f"Not a {self.product} release", raw,
                             field="release", value=token)
        return release

    def from_tokens(self, tokens, raw) -> CanonicalRecord:
        release = self.normalize_release(tokens[1], raw) if len(tokens) > 1 else None
        return self.make_record(release, self.all_editions())

    def extract_release(self, text: str) -> Optional[str]:
        service_pack = find_service_pack(text)
        if service_pack is None:
            return None
        return self.normalize_release(service_pack, text)


class Windows8Recognizer(LegacyClientRecognizer):
    """Windows 8 and 8.1 are identified by the whole label (``8`` / ``8.1``)."""

    family = OSFamily.WINDOWS_8
    product = "Windows 8"
    min_tokens = 1
    max_tokens = 1
    accepts_single_token = True
    edition_enum = Windows8Edition
    edition_keywords = edition_keyword_table(
        list(Windows8Edition),
        aliases={Windows8Edition.PROFESSIONAL: ("Pro",), Windows8Edition.PROFESSIONAL_N: ("Pro N",)},
    )
    products = {"8": "Windows 8", "8.1": "Windows 8.1"}

    def matches_discriminator(self, tokens) -> bool:
        return tokens[0] in self.products

    def from_tokens(self, tokens, raw) -> CanonicalRecord:
        return self.make_record(None, self.all_editions(), product=self.products[tokens[0]])

    def from_free_text(self, text: str) -> CanonicalRecord:
        if contains_any_word(text, ("Windows 8.1",), ignore_case=True):
            product = "Windows 8.1"
        elif contains_any_word(text, ("Windows 8",), ignore_case=True):
            product = "Windows 8"
        else:
            raise self.error(ResolutionErrorKind.DISCRIMINATOR_MISMATCH, "Not Windows 8", text)
        edition = self.extract_edition(text)
        return self.make_record(None, (edition,), product=product)


class Windows7Recognizer(LegacyClientRecognizer):
    family = OSFamily.WINDOWS_7
    product = "Windows 7"
    discriminator = "7"
    edition_enum = Windows7Edition
    edition_keywords = edition_keyword_table(list(Windows7Edition))
    product_phrases = ("Windows 7",)
    releases = {"SP1": "SP1", "ESU1": "ESU1", "ESU2": "ESU2", "ESU3": "ESU3"}


class WindowsVistaRecognizer(LegacyClientRecognizer):
    family = OSFamily.WINDOWS_VISTA
    product = "Windows Vista"
    discriminator = "6"
    edition_enum = WindowsVistaEdition
    edition_keywords = edition_keyword_table(list(WindowsVistaEdition))
    product_phrases = ("Windows Vista",)
    releases = {"SP1": "SP1", "SP2": "SP2"}


class WindowsXPRecognizer(LegacyClientRecognizer):
    family = OSFamily.WINDOWS_XP
    product = "Windows XP"
    discriminator = "5"
    edition_enum = WindowsXPEdition
    edition_keywords = edition_keyword_table(list(WindowsXPEdition))
    product_phrases = ("Windows XP",)
    releases = {"SP1": "SP1", "SP1A": "SP1a", "SP2": "SP2", "SP3": "SP3"}


class Windows2000Recognizer(LegacyClientRecognizer):
    family = OSFamily.WINDOWS_2000
    product = "Windows 2000"
    discriminator = "2000"
    min_tokens = 1
    accepts_single_token = True
    edition_enum = Windows2000Edition
    edition_keywords = edition_keyword_table(list(Windows2000Edition))
    product_phrases = ("Windows 2000",)
    releases = {"SP1": "SP1", "SP2": "SP2", "SP3": "SP3", "SP4": "SP4"}

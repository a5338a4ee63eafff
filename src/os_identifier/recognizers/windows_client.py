#!/usr/bin/env python3
"""
Windows 11 and Windows 10 recognizers.

Structured labels follow the endoflife.date cycle naming:

    11-24h2            all editions
    11-24h2-e          education/enterprise tier
    11-24h2-iot-lts    IoT tier, long-term servicing
    10-1507-iot        Windows 10 IoT Core (no editions)
    10-1607-e-lts      enterprise tier, LTSB (pre-1709 long-term name)

Free-text labels are resolved through an embedded build number or, when
there is none, a known release label:

    Windows 10 Professional Edition (Build 19045) (64 Bit) GA
    Microsoft Windows 11 Enterprise 21H2
"""

from typing import Optional, Tuple

from .base_recognizer import (
    GENERAL_AVAILABILITY_KEYWORDS,
    KNOWN_PRODUCT_PHRASES,
    ProductRecognizer,
)
from ..core.canonical_record import CanonicalRecord, Edition, OSFamily, ServiceChannel
from ..core.derivation_rules import expand_edition_group, reconcile_channel
from ..core.keyword_matcher import contains_any_word, find_number_with_digits, match_first_keyword
from ..core.resolution_errors import ResolutionErrorKind, UnknownBuildError
from ..storage.build_index_manager import BuildIndex

LONG_TERM_SELECTOR = "lts"


class Windows11Edition(Edition):
    EDUCATION = "Education"
    ENTERPRISE = "Enterprise"
    ENTERPRISE_MULTI_SESSION = "Enterprise multi-session"
    HOME = "Home"
    IOT_ENTERPRISE = "IoT Enterprise"
    PRO = "Pro"
    PRO_EDUCATION = "Pro Education"
    PRO_FOR_WORKSTATIONS = "Pro for Workstations"


class Windows11Channel(ServiceChannel):
    GAC = ("GAC", True, False)
    LTSC = ("LTSC", False, True)


class Windows10Edition(Edition):
    EDUCATION = "Education"
    ENTERPRISE = "Enterprise"
    ENTERPRISE_IOT = "Enterprise IoT"
    HOME = "Home"
    PRO = "Pro"
    PRO_EDUCATION = "Pro Education"
    PRO_FOR_WORKSTATIONS = "Pro for Workstations"


class Windows10Channel(ServiceChannel):
    GAC = ("GAC", True, False)
    SAC = ("SAC", True, False)
    LTSB = ("LTSB", False, True)
    LTSC = ("LTSC", False, True)


WINDOWS_11_EDITION_GROUPS = {
    "e": (Windows11Edition.EDUCATION, Windows11Edition.ENTERPRISE, Windows11Edition.ENTERPRISE_MULTI_SESSION),
    "iot": (Windows11Edition.IOT_ENTERPRISE,),
    "w": (Windows11Edition.HOME, Windows11Edition.PRO, Windows11Edition.PRO_EDUCATION,
          Windows11Edition.PRO_FOR_WORKSTATIONS),
}

WINDOWS_10_EDITION_GROUPS = {
    "e": (Windows10Edition.EDUCATION, Windows10Edition.ENTERPRISE, Windows10Edition.ENTERPRISE_IOT),
    "iot": (Windows10Edition.ENTERPRISE_IOT,),
    "w": (Windows10Edition.HOME, Windows10Edition.PRO, Windows10Edition.PRO_EDUCATION,
          Windows10Edition.PRO_FOR_WORKSTATIONS),
}

WINDOWS_10_IOT_CORE_SELECTOR = "iot"
WINDOWS_10_IOT_CORE_PRODUCT = "Windows 10 IoT Core"
# Long-term servicing was called LTSB up to and including this release
WINDOWS_10_LTSB_CUTOFF = "1607"


class BuildIndexedClientRecognizer(ProductRecognizer):
    """Shared grammar of the client families that resolve build numbers."""

    min_tokens = 2
    max_tokens = 4
    edition_groups: dict = {}
    channel_keywords: Tuple[Tuple[ServiceChannel, Tuple[str, ...]], ...] = ()

    def __init__(self, build_index: BuildIndex):
        self.build_index = build_index

    def from_tokens(self, tokens, raw):
        release = tokens[1].upper()
        editions = self.all_editions()
        if len(tokens) >= 3:
            editions = self.select_editions(tokens[2], raw)
        if len(tokens) == 4:
            return self.make_record(release, editions, self.select_channel(release, tokens[3], raw))
        return self.make_record(release, editions)

    def select_editions(self, code: str, raw: str) -> Tuple[Edition, ...]:
        editions = expand_edition_group(code, self.edition_groups)
        if editions is None:
            raise self.error(ResolutionErrorKind.UNRECOGNIZED_FIELD, f"Not a {self.product} edition group",
                             raw, field="edition", value=code)
        return editions

    def requested_channel(self, code: str, raw: str) -> ServiceChannel:
        if code.lower() != LONG_TERM_SELECTOR:
            raise self.error(ResolutionErrorKind.UNRECOGNIZED_FIELD, f"Not a {self.product} service channel",
                             raw, field="service_channel", value=code)
        return self.long_term_channel()

    def select_channel(self, release: str, code: str, raw: str) -> ServiceChannel:
        return self.requested_channel(code, raw)

    def long_term_channel(self) -> ServiceChannel:
        raise NotImplementedError

    def mentions_product(self, text: str) -> bool:
        # Build numbers identify the product on their own, so a label that
        # names no product at all is still a candidate.
        if contains_any_word(text, self.product_phrases, ignore_case=True):
            return True
        return not contains_any_word(text, KNOWN_PRODUCT_PHRASES, ignore_case=True)

    def extract_release(self, text: str) -> Optional[str]:
        if self.build_index is None:
            raise self.error(ResolutionErrorKind.UNRESOLVED_FIELD, f"No {self.product} release table loaded",
                             text, field="release")
        build = find_number_with_digits(text)
        if build is not None:
            try:
                return self.build_index.resolve_build(build)
            except UnknownBuildError as e:
                raise self.error(ResolutionErrorKind.UNKNOWN_BUILD, str(e), text,
                                 field="release", value=build) from e

        release = self.build_index.identify_release(text)
        if release is None:
            raise self.error(ResolutionErrorKind.UNRESOLVED_FIELD, f"Not a {self.product} release", text,
                             field="release")
        return release

    def extract_channel(self, text: str, release: Optional[str]) -> ServiceChannel:
        channel = match_first_keyword(text, self.channel_keywords)
        if channel is None:
            return self.default_channel_for(release)
        return channel


class Windows11Recognizer(BuildIndexedClientRecognizer):
    family = OSFamily.WINDOWS_11
    product = "Windows 11"
    discriminator = "11"
    edition_enum = Windows11Edition
    edition_groups = WINDOWS_11_EDITION_GROUPS
    product_phrases = ("Windows 11",)
    channel_enum = Windows11Channel
    default_channel = Windows11Channel.GAC

    edition_keywords = (
        (Windows11Edition.PRO_FOR_WORKSTATIONS, ("Pro for Workstations",)),
        (Windows11Edition.PRO_EDUCATION, ("Pro Education",)),
        (Windows11Edition.EDUCATION, ("Education Edition", "Education")),
        (Windows11Edition.ENTERPRISE_MULTI_SESSION, ("Enterprise multi-session", "Enterprise Multi-Session")),
        (Windows11Edition.IOT_ENTERPRISE, ("IoT Enterprise",)),
        (Windows11Edition.ENTERPRISE, ("Enterprise Edition", "Enterprise")),
        (Windows11Edition.HOME, ("Home Edition", "Home")),
        (Windows11Edition.PRO, ("Professional Edition", "Professional", "Pro")),
    )
    channel_keywords = (
        (Windows11Channel.GAC, GENERAL_AVAILABILITY_KEYWORDS),
        (Windows11Channel.LTSC, ("LTSC",)),
    )

    def long_term_channel(self) -> ServiceChannel:
        return Windows11Channel.LTSC


class Windows10Recognizer(BuildIndexedClientRecognizer):
    family = OSFamily.WINDOWS_10
    product = "Windows 10"
    discriminator = "10"
    edition_enum = Windows10Edition
    edition_groups = WINDOWS_10_EDITION_GROUPS
    product_phrases = ("Windows 10",)
    channel_enum = Windows10Channel
    default_channel = Windows10Channel.GAC
    semi_annual_channel = Windows10Channel.SAC

    edition_keywords = (
        (Windows10Edition.PRO_FOR_WORKSTATIONS, ("Pro for Workstations",)),
        (Windows10Edition.PRO_EDUCATION, ("Pro Education",)),
        (Windows10Edition.EDUCATION, ("Education Edition", "Education")),
        (Windows10Edition.ENTERPRISE_IOT, ("Enterprise IoT", "IoT Enterprise")),
        (Windows10Edition.ENTERPRISE, ("Enterprise Edition", "Enterprise")),
        (Windows10Edition.HOME, ("Home Edition", "Home")),
        (Windows10Edition.PRO, ("Professional Edition", "Professional", "Pro")),
    )
    channel_keywords = (
        (Windows10Channel.GAC, GENERAL_AVAILABILITY_KEYWORDS),
        (Windows10Channel.LTSC, ("LTSC",)),
        (Windows10Channel.LTSB, ("LTSB",)),
    )

    def from_tokens(self, tokens, raw) -> CanonicalRecord:
        if len(tokens) == 3 and tokens[2].lower() == WINDOWS_10_IOT_CORE_SELECTOR:
            release = tokens[1].upper()
            return self.make_record(release, (), product=WINDOWS_10_IOT_CORE_PRODUCT)
        return super().from_tokens(tokens, raw)

    def long_term_channel(self) -> ServiceChannel:
        return Windows10Channel.LTSC

    def reconcile(self, release: str, requested: ServiceChannel) -> ServiceChannel:
        return reconcile_channel(
            release,
            requested,
            semi_annual=Windows10Channel.SAC,
            legacy_long_term=Windows10Channel.LTSB,
            long_term=Windows10Channel.LTSC,
            cutoff=WINDOWS_10_LTSB_CUTOFF,
        )

    def select_channel(self, release: str, code: str, raw: str) -> ServiceChannel:
        return self.reconcile(release, self.requested_channel(code, raw))

    def extract_channel(self, text: str, release: Optional[str]) -> ServiceChannel:
        channel = match_first_keyword(text, self.channel_keywords)
        if channel is not None and channel.is_long_term and release:
            return self.reconcile(release, channel)
        if channel is None:
            return self.default_channel_for(release)
        return channel

#!/usr/bin/env python3
"""
Product Recognizer base class.

A recognizer owns the grammar of one product family in both label modes:
- structured: positional tokens, first token is the family discriminator
- free text: product phrase, edition keywords, release and channel search

Subclasses declare their vocabulary as class attributes and implement
``matches_discriminator`` and ``from_tokens``; free-text support comes from
overriding ``extract_release`` and, where needed, ``from_free_text``.
"""

from typing import Optional, Sequence, Tuple, Type

from ..core.canonical_record import VENDOR, CanonicalRecord, Edition, OSFamily, ServiceChannel
from ..core.derivation_rules import channel_or_default, infer_channel_from_release
from ..core.keyword_matcher import contains_any_word, match_first_keyword
from ..core.label_classifier import Label
from ..core.resolution_errors import RecognizerError, ResolutionErrorKind

# Product phrases for every supported family; a free-text label naming one of
# these belongs to that family only.
KNOWN_PRODUCT_PHRASES = (
    "Windows 11",
    "Windows 10",
    "Windows 8",
    "Windows 7",
    "Windows Vista",
    "Windows XP",
    "Windows Server",
    "Windows 2000",
)

GENERAL_AVAILABILITY_KEYWORDS = ("General Availability", "GA")


def edition_keyword_table(editions: Sequence[Edition], aliases=None) -> Tuple[Tuple[Edition, Tuple[str, ...]], ...]:
    """
    Keyword rows for ``match_first_keyword`` built from display names.

    Each edition matches ``"<name> Edition"`` and ``"<name>"`` plus any
    aliases; rows are ordered longest name first so that ``Home Premium N``
    is tried before ``Home Premium`` and ``Home``.
    """
    aliases = aliases or {}
    rows = []
    for edition in sorted(editions, key=lambda e: (-len(e.display_name), e.display_name)):
        phrases = (f"{edition.display_name} Edition", edition.display_name) + tuple(aliases.get(edition, ()))
        rows.append((edition, phrases))
    return tuple(rows)


class ProductRecognizer:
    """Base class for every product family recognizer"""

    family: OSFamily
    product: str
    vendor: str = VENDOR
    discriminator: str = ""
    min_tokens: int = 1
    max_tokens: int = 4
    accepts_single_token: bool = False

    edition_enum: Type[Edition]
    edition_keywords: Tuple[Tuple[Edition, Tuple[str, ...]], ...] = ()
    product_phrases: Tuple[str, ...] = ()

    channel_enum: Type[ServiceChannel]
    default_channel: ServiceChannel
    semi_annual_channel: Optional[ServiceChannel] = None

    # Entry point

    def recognize(self, label: Label) -> CanonicalRecord:
        """
        Resolve a classified label or raise RecognizerError.

        Structured labels use the positional grammar; bare single tokens
        (``2019``, ``8.1``) use it too for families that accept them.
        Everything else goes through free-text extraction.
        """
        if label.is_structured:
            return self._recognize_tokens(label.tokens, label.raw)
        single_token = label.single_token
        if single_token is not None and self.accepts_single_token:
            return self._recognize_tokens((single_token,), label.raw)
        return self.from_free_text(label.raw)

    def _recognize_tokens(self, tokens: Tuple[str, ...], raw: str) -> CanonicalRecord:
        if not self.matches_discriminator(tokens):
            raise self.error(ResolutionErrorKind.DISCRIMINATOR_MISMATCH, f"Not {self.product}", raw,
                             field="discriminator", value=tokens[0])
        if not self.min_tokens <= len(tokens) <= self.max_tokens:
            raise self.error(ResolutionErrorKind.MALFORMED_LABEL,
                             f"{self.product} labels take {self.min_tokens} to {self.max_tokens} fields, got {len(tokens)}",
                             raw)
        if any(not token for token in tokens):
            raise self.error(ResolutionErrorKind.MALFORMED_LABEL, "Empty field in label", raw)
        return self.from_tokens(tokens, raw)

    # Structured mode

    def matches_discriminator(self, tokens: Tuple[str, ...]) -> bool:
        return tokens[0].lower() == self.discriminator

    def from_tokens(self, tokens: Tuple[str, ...], raw: str) -> CanonicalRecord:
        raise NotImplementedError

    # Free-text mode

    def mentions_product(self, text: str) -> bool:
        return contains_any_word(text, self.product_phrases, ignore_case=True)

    def from_free_text(self, text: str) -> CanonicalRecord:
        if not self.mentions_product(text):
            raise self.error(ResolutionErrorKind.DISCRIMINATOR_MISMATCH, f"Not {self.product}", text)
        release = self.extract_release(text)
        edition = self.extract_edition(text)
        channel = self.extract_channel(text, release)
        return self.make_record(release, (edition,), channel)

    def extract_edition(self, text: str) -> Edition:
        edition = match_first_keyword(text, self.edition_keywords)
        if edition is None:
            raise self.error(ResolutionErrorKind.UNRESOLVED_FIELD, f"Not a {self.product} edition", text,
                             field="edition")
        return edition

    def extract_release(self, text: str) -> Optional[str]:
        return None

    def extract_channel(self, text: str, release: Optional[str]) -> ServiceChannel:
        return self.default_channel

    # Shared helpers

    def default_channel_for(self, release: Optional[str]) -> ServiceChannel:
        """Channel inferred from the release, falling back to the family default"""
        inferred = None
        if self.semi_annual_channel is not None:
            inferred = infer_channel_from_release(release, self.semi_annual_channel)
        return channel_or_default(inferred, self.default_channel)

    def all_editions(self) -> Tuple[Edition, ...]:
        return tuple(self.edition_enum)

    def make_record(self, release: Optional[str], editions: Sequence[Edition],
                    channel: Optional[ServiceChannel] = None, product: Optional[str] = None) -> CanonicalRecord:
        return CanonicalRecord(
            family=self.family,
            vendor=self.vendor,
            product=product or self.product,
            release=release or None,
            editions=tuple(editions),
            service_channel=channel if channel is not None else self.default_channel_for(release),
        )

    def error(self, kind: ResolutionErrorKind, reason: str, label: str,
              field: Optional[str] = None, value: Optional[str] = None) -> RecognizerError:
        return RecognizerError(kind, self.family.value, reason, label, field=field, value=value)

    def __repr__(self):
        return f"{type(self).__name__}({self.family.value})"

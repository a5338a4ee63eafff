#!/usr/bin/env python3
"""
Test Suite: Label Classifier

Tests the structured / free-text decision made from surface syntax alone:
- delimiter-only labels are structured and split into positional tokens
- any forbidden separator (space, underscore, dot, ...) forces free text
- single bare tokens stay free text but expose ``single_token``

Standard Output Format: TEST_RESULTS: PASSED=X TOTAL=Y SUITE="Label Classifier"
"""
import sys
from pathlib import Path

# Add project root to path
project_root = Path(__file__).resolve().parent.parent.parent
sys.path.insert(0, str(project_root))

from src.os_identifier.core.label_classifier import (
    FORBIDDEN_SEPARATORS,
    FreeTextLabel,
    StructuredLabel,
    classify_label,
    is_structured_label,
)

TESTS = []


def test(description):
    """Decorator registering a test function with the suite"""
    def decorator(func):
        TESTS.append((description, func))
        return func
    return decorator


# ============================================================================
# Structured labels
# ============================================================================

@test("Structured - three field client label")
def test_structured_client_label():
    label = classify_label("11-24h2-e")
    assert isinstance(label, StructuredLabel)
    assert label.is_structured
    assert label.tokens == ("11", "24h2", "e"), label.tokens
    assert label.raw == "11-24h2-e"


@test("Structured - two field server label")
def test_structured_server_label():
    label = classify_label("2012-r2")
    assert label.is_structured
    assert label.tokens == ("2012", "r2")


@test("Structured - empty fields are kept as empty tokens")
def test_structured_empty_fields():
    label = classify_label("11--e")
    assert label.is_structured
    assert label.tokens == ("11", "", "e")


@test("Structured - decision is case independent")
def test_structured_case_independent():
    assert is_structured_label("10-1607-E-LTS")
    assert classify_label("10-1607-E-LTS").tokens == ("10", "1607", "E", "LTS")


# ============================================================================
# Free-text labels
# ============================================================================

@test("Free text - whitespace forces free text")
def test_free_text_whitespace():
    label = classify_label("Microsoft Windows 11 Enterprise 21H2")
    assert isinstance(label, FreeTextLabel)
    assert not label.is_structured
    assert label.single_token is None


@test("Free text - every forbidden separator forces free text")
def test_free_text_forbidden_separators():
    for separator in FORBIDDEN_SEPARATORS:
        value = f"10{separator}1607-e"
        assert not is_structured_label(value), f"{value!r} should be free text"


@test("Free text - hyphenated words inside prose stay free text")
def test_free_text_hyphen_in_prose():
    assert not is_structured_label("Windows Vista Ultimate 64-bit")


@test("Free text - label without delimiter is a single token")
def test_single_token():
    for value in ("2019", "8.1", "2000"):
        label = classify_label(value)
        assert not label.is_structured
        assert label.single_token == value


@test("Free text - empty string is free text without a token")
def test_empty_string():
    assert not is_structured_label("")
    label = classify_label("")
    assert not label.is_structured
    assert label.single_token is None


@test("Classification is deterministic")
def test_classification_deterministic():
    for value in ("11-24h2-e", "Windows 10 Pro", "2019", "eol-1"):
        assert classify_label(value) == classify_label(value)


# ============================================================================
# Run all tests
# ============================================================================

def main():
    """Run all tests and output results"""
    print("=" * 80)
    print("LABEL CLASSIFIER TEST SUITE")
    print("=" * 80)

    passed = 0
    for description, func in TESTS:
        try:
            func()
            passed += 1
            print(f"  PASS: {description}")
        except AssertionError as e:
            print(f"  FAIL: {description}")
            print(f"    {e}")
        except Exception as e:
            print(f"  FAIL: {description}")
            print(f"    Unexpected error: {type(e).__name__}: {e}")

    print()
    print(f'TEST_RESULTS: PASSED={passed} TOTAL={len(TESTS)} SUITE="Label Classifier"')
    sys.exit(0 if passed == len(TESTS) else 1)


if __name__ == "__main__":
    main()

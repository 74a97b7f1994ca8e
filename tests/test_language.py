"""Tests for heuristic language detection."""

from __future__ import annotations

import pytest

from libassist.pipeline.language import LanguageDetector, detect_language, normalize_language


class TestDetectLanguage:
    """Test the default detection policy."""

    @pytest.mark.parametrize(
        "text, expected",
        [
            ("Де знаходиться читальна зала?", "uk"),
            ("Дякую за допомогу", "uk"),
            ("Где находится читальный зал? Спасибо", "ru"),
            ("Здравствуйте, подскажите часы работы", "ru"),
            ("Where is the reading room?", "en"),
            ("Каталог", "uk"),  # Cyrillic without distinguishing marks
            ("12345", "en"),
        ],
    )
    def test_examples(self, text: str, expected: str) -> None:
        assert detect_language(text) == expected

    @pytest.mark.parametrize("text", ["", "   ", "\n\t", None])
    def test_blank_is_undetermined(self, text) -> None:
        assert detect_language(text) is None

    def test_scores(self) -> None:
        uk_score, ru_score = LanguageDetector().scores("їжак і ёж")
        assert uk_score == 2
        assert ru_score == 1


class TestLanguageDetector:
    """Test configurable tie-breaking."""

    def test_custom_cyrillic_default(self) -> None:
        detector = LanguageDetector(cyrillic_default="ru")
        assert detector.detect("Каталог") == "ru"

    def test_custom_fallback(self) -> None:
        detector = LanguageDetector(fallback="uk")
        assert detector.detect("hello") == "uk"

    def test_rejects_unsupported_codes(self) -> None:
        with pytest.raises(ValueError):
            LanguageDetector(cyrillic_default="de")


class TestNormalizeLanguage:
    """Test normalize_language function."""

    def test_supported_values_pass_through(self) -> None:
        assert normalize_language("ru") == "ru"

    def test_unknown_values_use_default(self) -> None:
        assert normalize_language("de") == "uk"
        assert normalize_language(None, default="en") == "en"

"""Unit tests for title normalization and scoring."""

from datetime import date

import pytest
from pytest import approx

from moviebonus.etl.aggregation.matcher import (
    PreparedTitle,
    TitleMatcher,
    normalize_title,
    titles_overlap,
    tokenize_title,
)


class TestNormalizeTitle:
    @staticmethod
    def test_folds_width_and_case() -> None:
        assert normalize_title("ＴＯＰ Gun： Maverick！") == "topgunmaverick"

    @staticmethod
    def test_drops_punctuation_and_spaces() -> None:
        assert normalize_title("《鬼滅之刃 劇場版》") == "鬼滅之刃劇場版"

    @staticmethod
    def test_empty_when_nothing_alphanumeric() -> None:
        assert normalize_title(" ！？ ") == ""


class TestTokenizeTitle:
    @staticmethod
    def test_cjk_bigrams() -> None:
        assert tokenize_title("鬼滅之刃") == {"鬼滅", "滅之", "之刃"}

    @staticmethod
    def test_latin_words() -> None:
        assert tokenize_title("Top Gun: Maverick") == {"top", "gun", "maverick"}

    @staticmethod
    def test_single_cjk_character() -> None:
        assert tokenize_title("獅 King") == {"獅", "king"}


@pytest.mark.unit
class TestTitleMatcher:
    @pytest.fixture
    def matcher(self) -> TitleMatcher:
        return TitleMatcher(release_window_days=180)

    @staticmethod
    def test_exact_match(matcher: TitleMatcher) -> None:
        assert matcher.score("鬼滅之刃", "鬼滅之刃") == approx(1.0)

    @staticmethod
    def test_width_variants_are_exact(matcher: TitleMatcher) -> None:
        assert matcher.score("ＤＵＮＥ", "Dune") == approx(1.0)

    @staticmethod
    def test_edition_suffix_scores_high(matcher: TitleMatcher) -> None:
        assert matcher.score("鬼滅之刃 劇場版", "鬼滅之刃") >= 0.5

    @staticmethod
    def test_unrelated_titles_score_zero(matcher: TitleMatcher) -> None:
        assert matcher.score("鬼滅之刃", "航海王") == approx(0.0)

    @staticmethod
    def test_empty_title_scores_zero(matcher: TitleMatcher) -> None:
        assert matcher.score("！！", "航海王") == approx(0.0)

    @staticmethod
    def test_distant_release_dates_are_penalized(matcher: TitleMatcher) -> None:
        score = matcher.score("鬼滅之刃", "鬼滅之刃", date(2020, 10, 16), date(2025, 8, 22))
        assert score == approx(0.8)

    @staticmethod
    def test_close_release_dates_not_penalized(matcher: TitleMatcher) -> None:
        score = matcher.score("鬼滅之刃", "鬼滅之刃", date(2025, 8, 1), date(2025, 8, 22))
        assert score == approx(1.0)

    @staticmethod
    def test_score_is_bounded(matcher: TitleMatcher) -> None:
        score = matcher.score("沙丘 第二部", "沙丘：第二部 IMAX")
        assert 0.0 <= score <= 1.0

    @staticmethod
    def test_accepts_prepared_titles(matcher: TitleMatcher) -> None:
        left = PreparedTitle.of("航海王")
        assert matcher.score(left, PreparedTitle.of("航海王")) == approx(1.0)

    @staticmethod
    def test_is_symmetric(matcher: TitleMatcher) -> None:
        assert matcher.score("沙丘 第二部", "沙丘") == matcher.score("沙丘", "沙丘 第二部")


class TestTitlesOverlap:
    @staticmethod
    def test_containment() -> None:
        assert titles_overlap("鬼滅之刃 劇場版 無限城篇", "鬼滅之刃")

    @staticmethod
    def test_no_overlap() -> None:
        assert not titles_overlap("航海王", "鬼滅之刃")

    @staticmethod
    def test_single_character_does_not_overlap() -> None:
        assert not titles_overlap("王", "航海王")

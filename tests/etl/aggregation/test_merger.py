"""Unit tests for the merge engine."""

from collections.abc import Callable
from datetime import date

import pytest
from pytest import approx

from moviebonus.etl.aggregation import MergeEngine, TitleMatcher
from moviebonus.etl.aggregation.merger import find_missing_titles
from moviebonus.etl.schemas import CanonicalMovieSeed, Listing, RawBonusObservation, TrackedTitle

SeedFactory = Callable[..., CanonicalMovieSeed]
ObservationFactory = Callable[..., RawBonusObservation]


class FixedScoreMatcher(TitleMatcher):
    """Matcher giving every pair the same score."""

    def __init__(self, value: float) -> None:
        super().__init__()
        self.value = value

    def score(self, left, right, left_date=None, right_date=None) -> float:
        return self.value


@pytest.mark.unit
class TestMergeEngine:
    @pytest.fixture
    def engine(self) -> MergeEngine:
        return MergeEngine(threshold=0.5)

    @staticmethod
    def test_single_bonus_scenario(
        engine: MergeEngine,
        make_seed: SeedFactory,
        make_observation: ObservationFactory,
    ) -> None:
        result = engine.merge([make_seed("100", "鬼滅之刃")], [make_observation()])

        assert len(result.records) == 1
        record = result.records[0]
        assert record.external_id == "100"
        assert len(record.exhibitor_groups) == 1
        group = record.exhibitor_groups[0]
        assert group.exhibitor_id == "A"
        assert len(group.bonuses) == 1
        assert group.bonuses[0].description == "入場海報"
        assert group.bonuses[0].week_index == 1
        assert result.unmatched == ()

    @staticmethod
    def test_below_threshold_is_unmatched(
        engine: MergeEngine,
        make_seed: SeedFactory,
        make_observation: ObservationFactory,
    ) -> None:
        observation = make_observation(movie_title_raw="航海王")
        result = engine.merge([make_seed("100", "鬼滅之刃")], [observation])

        assert result.records[0].exhibitor_groups == ()
        assert len(result.unmatched) == 1
        assert result.unmatched[0].observation == observation
        assert result.unmatched[0].best_score == approx(0.0)
        assert result.unmatched[0].best_candidate is None

    @staticmethod
    def test_one_record_per_seed_in_seed_order(
        engine: MergeEngine,
        make_seed: SeedFactory,
        make_observation: ObservationFactory,
    ) -> None:
        seeds = [make_seed("2", "航海王"), make_seed("1", "鬼滅之刃")]
        result = engine.merge(seeds, [make_observation(movie_title_raw="航海王 紅髮歌姬")])

        assert [r.external_id for r in result.records] == ["2", "1"]
        assert result.records[0].bonus_count == 1
        assert result.records[1].bonus_count == 0

    @staticmethod
    def test_no_seeds_leaves_everything_unmatched(
        engine: MergeEngine,
        make_observation: ObservationFactory,
    ) -> None:
        result = engine.merge([], [make_observation(), make_observation(description="徽章")])

        assert result.records == ()
        assert len(result.unmatched) == 2
        assert result.stats.unmatched == 2

    @staticmethod
    def test_tie_prefers_earliest_release(
        engine: MergeEngine,
        make_seed: SeedFactory,
        make_observation: ObservationFactory,
    ) -> None:
        seeds = [
            make_seed("10", "沙丘", release_date=date(2024, 5, 1)),
            make_seed("20", "沙丘", release_date=date(2024, 3, 1)),
        ]
        result = engine.match(make_observation(movie_title_raw="沙丘"), seeds)

        assert result.success
        assert result.external_id == "20"
        assert result.method == "exact"

    @staticmethod
    def test_tie_without_dates_prefers_lowest_id(
        engine: MergeEngine,
        make_seed: SeedFactory,
        make_observation: ObservationFactory,
    ) -> None:
        seeds = [make_seed("20", "沙丘"), make_seed("10", "沙丘")]
        result = engine.match(make_observation(movie_title_raw="沙丘"), seeds)

        assert result.external_id == "10"

    @staticmethod
    def test_matches_english_title(
        engine: MergeEngine,
        make_seed: SeedFactory,
        make_observation: ObservationFactory,
    ) -> None:
        seed = make_seed("361743", "捍衛戰士：獨行俠", english_title="Top Gun: Maverick")
        result = engine.match(make_observation(movie_title_raw="TOP GUN MAVERICK"), [seed])

        assert result.success
        assert result.score == approx(1.0)

    @staticmethod
    def test_duplicate_bonuses_collapse(
        engine: MergeEngine,
        make_seed: SeedFactory,
        make_observation: ObservationFactory,
    ) -> None:
        observations = [
            make_observation(description="入場海報"),
            make_observation(description="入場 海報", source_id="social:A"),
        ]
        result = engine.merge([make_seed()], observations)

        assert result.records[0].bonus_count == 1
        assert result.stats.duplicates == 1

    @staticmethod
    def test_groups_by_resolved_exhibitor(
        engine: MergeEngine,
        make_seed: SeedFactory,
        make_observation: ObservationFactory,
    ) -> None:
        observations = [
            make_observation(exhibitor_id="威秀", exhibitor_name="威秀", description="海報"),
            make_observation(exhibitor_id="vieshow", exhibitor_name="Vieshow", description="徽章"),
            make_observation(exhibitor_id="秀泰", exhibitor_name="秀泰", description="海報"),
        ]
        result = engine.merge([make_seed()], observations)

        groups = result.records[0].exhibitor_groups
        assert [g.exhibitor_id for g in groups] == ["vieshow", "showtimes"]
        assert groups[0].exhibitor_name == "威秀影城"
        assert [b.description for b in groups[0].bonuses] == ["海報", "徽章"]

    @staticmethod
    def test_is_deterministic(
        engine: MergeEngine,
        make_seed: SeedFactory,
        make_observation: ObservationFactory,
    ) -> None:
        seeds = [make_seed("1", "鬼滅之刃"), make_seed("2", "鬼滅之刃 無限城篇")]
        observations = [
            make_observation(),
            make_observation(movie_title_raw="無限城篇", description="色紙"),
            make_observation(movie_title_raw="航海王"),
        ]

        first = engine.merge(seeds, observations)
        second = engine.merge(seeds, observations)

        assert first.records == second.records
        assert first.unmatched == second.unmatched

    @staticmethod
    def test_match_rate(
        engine: MergeEngine,
        make_seed: SeedFactory,
        make_observation: ObservationFactory,
    ) -> None:
        result = engine.merge(
            [make_seed()],
            [make_observation(), make_observation(movie_title_raw="航海王")],
        )
        assert result.stats.match_rate == approx(50.0)

    @staticmethod
    @pytest.mark.parametrize(("threshold", "matched"), [(0.5, False), (0.49, True)])
    def test_score_must_exceed_threshold(
        threshold: float,
        matched: bool,
        make_seed: SeedFactory,
        make_observation: ObservationFactory,
    ) -> None:
        engine = MergeEngine(threshold=threshold, matcher=FixedScoreMatcher(0.5))

        result = engine.match(make_observation(), [make_seed("100", "鬼滅之刃")])

        assert result.success is matched
        assert result.score == approx(0.5)
        assert result.external_id == "100"


class TestFindMissingTitles:
    @staticmethod
    def test_lists_unknown_titles(make_seed: SeedFactory) -> None:
        tracked = [
            TrackedTitle(title="鬼滅之刃 劇場版 無限城篇"),
            TrackedTitle(title="新片", listing=Listing.COMING_SOON),
            TrackedTitle(title="新片"),
        ]
        assert find_missing_titles(tracked, [make_seed("100", "鬼滅之刃")]) == ["新片"]

    @staticmethod
    def test_english_title_counts_as_known(make_seed: SeedFactory) -> None:
        seed = make_seed("1", "沙丘：第二部", english_title="Dune: Part Two")
        assert find_missing_titles([TrackedTitle(title="Dune Part Two")], [seed]) == []

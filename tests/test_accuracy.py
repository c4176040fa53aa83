"""Tests for the hit result estimators and accuracy formulas of the four rulesets.

Properties checked per ruleset:
- the base judgements add up to the judged object count
- estimate followed by compute_accuracy lands within one rounding step
- higher target accuracy never gives a lower computed accuracy
- overrides are honoured verbatim
- impossible inputs raise DegenerateInputError
"""

import math

import pytest
from conftest import catch_beatmap, mania_beatmap, osu_beatmap, taiko_beatmap

from ppcalc.exceptions import DegenerateInputError, InvalidRequestError
from ppcalc.models import Beatmap, HitResult, Mod, ModSet, Ruleset, classic_mod
from ppcalc.services.accuracy import (
    CatchHitResultEstimator,
    ManiaHitResultEstimator,
    OsuHitResultEstimator,
    TaikoHitResultEstimator,
    get_estimator,
)

ACCURACY_STEPS = [1.0, 0.99, 0.95, 0.9, 0.85, 0.8, 0.7, 0.6, 0.5]


class TestRegistry:
    @pytest.mark.parametrize(
        "ruleset, expected",
        [
            (Ruleset.OSU, OsuHitResultEstimator),
            (Ruleset.TAIKO, TaikoHitResultEstimator),
            (Ruleset.CATCH, CatchHitResultEstimator),
            (Ruleset.MANIA, ManiaHitResultEstimator),
            (3, ManiaHitResultEstimator),
        ],
    )
    def test_get_estimator(self, ruleset, expected):
        assert isinstance(get_estimator(ruleset), expected)

    def test_same_instance_per_ruleset(self):
        assert get_estimator(Ruleset.OSU) is get_estimator(0)

    def test_unknown_ruleset(self):
        with pytest.raises(InvalidRequestError):
            get_estimator(4)


class TestCommonValidation:
    """Validation shared by every estimator."""

    @pytest.mark.parametrize("accuracy", [1.5, -0.1, math.nan])
    def test_accuracy_out_of_range(self, accuracy):
        with pytest.raises(DegenerateInputError):
            OsuHitResultEstimator().estimate(osu_beatmap(circles=10), accuracy=accuracy)

    def test_empty_beatmap(self):
        with pytest.raises(DegenerateInputError):
            TaikoHitResultEstimator().estimate(Beatmap(), accuracy=1.0)

    def test_misses_exceed_objects(self):
        with pytest.raises(DegenerateInputError):
            ManiaHitResultEstimator().estimate(mania_beatmap(5), accuracy=0.9, misses=6)

    def test_missing_accuracy_without_overrides(self):
        with pytest.raises(InvalidRequestError):
            OsuHitResultEstimator().estimate(osu_beatmap(circles=10))

    def test_validate_statistics_rejects_foreign_results(self):
        with pytest.raises(InvalidRequestError):
            TaikoHitResultEstimator().validate_statistics({HitResult.PERFECT: 3})

    def test_validate_statistics_rejects_negative_counts(self):
        with pytest.raises(InvalidRequestError):
            OsuHitResultEstimator().validate_statistics({HitResult.GREAT: -1})

    def test_validate_statistics_allows_zero_foreign_results(self):
        TaikoHitResultEstimator().validate_statistics({HitResult.GREAT: 5, HitResult.PERFECT: 0})


class TestOsu:
    estimator = OsuHitResultEstimator()

    def test_scenario_97_percent(self):
        """100 circles at 97%: 96 Greats, 4 Oks, 0 Mehs, accuracy 584/600."""
        beatmap = osu_beatmap(circles=100)
        stats = self.estimator.estimate(beatmap, accuracy=0.97)

        assert stats[HitResult.GREAT] == 96
        assert stats[HitResult.OK] == 4
        assert stats[HitResult.MEH] == 0
        assert stats[HitResult.MISS] == 0
        assert self.estimator.compute_accuracy(beatmap, stats) == pytest.approx(584 / 600)

    def test_perfect_accuracy(self):
        stats = self.estimator.estimate(osu_beatmap(circles=50), accuracy=1.0)
        assert stats == {HitResult.GREAT: 50, HitResult.OK: 0, HitResult.MEH: 0, HitResult.MISS: 0}

    def test_zero_accuracy_is_all_misses(self):
        stats = self.estimator.estimate(osu_beatmap(circles=20), accuracy=0.0)
        assert stats[HitResult.MISS] == 20
        assert stats[HitResult.GREAT] == 0

    def test_all_misses(self):
        stats = self.estimator.estimate(osu_beatmap(circles=20), accuracy=0.5, misses=20)
        assert stats[HitResult.MISS] == 20
        assert self.estimator.count_judgements(stats) == 20

    def test_low_accuracy_adds_misses(self):
        """Below what all-Meh reaches, the remainder becomes misses."""
        beatmap = osu_beatmap(circles=100)
        stats = self.estimator.estimate(beatmap, accuracy=0.1)

        assert stats[HitResult.MEH] == 60
        assert stats[HitResult.MISS] == 40
        assert stats[HitResult.GREAT] == 0
        assert self.estimator.compute_accuracy(beatmap, stats) == pytest.approx(0.1)

    @pytest.mark.parametrize("misses", [0, 3, 10])
    def test_conservation(self, misses):
        beatmap = osu_beatmap(circles=80, sliders=20)
        for accuracy in ACCURACY_STEPS:
            stats = self.estimator.estimate(beatmap, accuracy=accuracy, misses=misses)
            assert self.estimator.count_judgements(stats) == 100
            assert all(v >= 0 for v in stats.values())

    def test_round_trip(self):
        beatmap = osu_beatmap(circles=100)
        for accuracy in ACCURACY_STEPS + [0.3, 0.2]:
            stats = self.estimator.estimate(beatmap, accuracy=accuracy)
            computed = self.estimator.compute_accuracy(beatmap, stats)
            assert abs(computed - accuracy) <= 0.5 / 100 + 1e-9

    def test_monotonic(self):
        beatmap = osu_beatmap(circles=100)
        computed = [
            self.estimator.compute_accuracy(beatmap, self.estimator.estimate(beatmap, accuracy=a))
            for a in sorted(ACCURACY_STEPS)
        ]
        assert computed == sorted(computed)

    def test_overrides_are_honoured(self):
        stats = self.estimator.estimate(osu_beatmap(circles=100), misses=2, oks=10, mehs=5)
        assert stats == {
            HitResult.GREAT: 83,
            HitResult.OK: 10,
            HitResult.MEH: 5,
            HitResult.MISS: 2,
        }

    def test_impossible_overrides(self):
        with pytest.raises(DegenerateInputError):
            self.estimator.estimate(osu_beatmap(circles=10), oks=8, mehs=5)

    def test_slider_judgements_recorded_without_classic(self):
        beatmap = osu_beatmap(circles=5, sliders=3, ticks_per_slider=1)
        stats = self.estimator.estimate(
            beatmap, accuracy=1.0, large_tick_misses=1, slider_tail_hits=2
        )
        assert stats[HitResult.LARGE_TICK_MISS] == 1
        assert stats[HitResult.SLIDER_TAIL_HIT] == 2

    def test_slider_judgements_dropped_under_classic(self):
        beatmap = osu_beatmap(circles=5, sliders=3, ticks_per_slider=1)
        stats = self.estimator.estimate(
            beatmap,
            ModSet.of([classic_mod()]),
            accuracy=1.0,
            large_tick_misses=1,
            slider_tail_hits=2,
        )
        assert HitResult.LARGE_TICK_MISS not in stats
        assert HitResult.SLIDER_TAIL_HIT not in stats

    def test_classic_with_slider_head_accuracy_keeps_slider_judgements(self):
        beatmap = osu_beatmap(sliders=3)
        mods = ModSet.of([Mod(acronym="CL", settings={"no_slider_head_accuracy": False})])
        stats = self.estimator.estimate(beatmap, mods, accuracy=1.0, slider_tail_hits=3)
        assert stats[HitResult.SLIDER_TAIL_HIT] == 3

    def test_accuracy_with_slider_judgements(self):
        """Tails weigh 3 and large ticks 0.6 on top of the 6/2/1 judgements."""
        beatmap = osu_beatmap(sliders=2, ticks_per_slider=1)
        stats = {
            HitResult.GREAT: 2,
            HitResult.SLIDER_TAIL_HIT: 1,
            HitResult.LARGE_TICK_MISS: 1,
        }
        # (12 + 3 + 0.6) / (12 + 6 + 1.2)
        assert self.estimator.compute_accuracy(beatmap, stats) == pytest.approx(15.6 / 19.2)

    def test_overrides_from_statistics(self):
        beatmap = osu_beatmap(circles=5, sliders=4)
        overrides = self.estimator.overrides_from(
            beatmap, {HitResult.OK: 3, HitResult.LARGE_TICK_MISS: 2}
        )
        assert overrides == {"oks": 3, "large_tick_misses": 2, "slider_tail_hits": 4}

    def test_overrides_from_fills_missing(self):
        overrides = self.estimator.overrides_from(
            osu_beatmap(circles=5), {HitResult.GREAT: 5}, fill_missing=True
        )
        assert overrides["oks"] == 0
        assert overrides["mehs"] == 0


class TestTaiko:
    estimator = TaikoHitResultEstimator()

    def test_judged_objects_is_max_combo(self):
        """Drum roll ticks do not count as judgements."""
        beatmap = taiko_beatmap(hits=30, drum_rolls=2)
        assert self.estimator.count_judged_objects(beatmap) == 30

    def test_estimate(self):
        stats = self.estimator.estimate(taiko_beatmap(100), accuracy=0.95)
        assert stats == {HitResult.GREAT: 90, HitResult.OK: 10, HitResult.MEH: 0, HitResult.MISS: 0}

    def test_accuracy_clamped_into_reachable_range(self):
        """With 10 misses out of 100, accuracy cannot go above 0.9 or below 0.45."""
        beatmap = taiko_beatmap(100)

        high = self.estimator.estimate(beatmap, accuracy=1.0, misses=10)
        assert high[HitResult.GREAT] == 90
        assert high[HitResult.OK] == 0

        low = self.estimator.estimate(beatmap, accuracy=0.1, misses=10)
        assert low[HitResult.GREAT] == 0
        assert low[HitResult.OK] == 90

    def test_conservation(self):
        beatmap = taiko_beatmap(120)
        for accuracy in ACCURACY_STEPS:
            stats = self.estimator.estimate(beatmap, accuracy=accuracy, misses=4)
            assert self.estimator.count_judgements(stats) == 120

    def test_round_trip(self):
        beatmap = taiko_beatmap(100)
        for accuracy in ACCURACY_STEPS:
            stats = self.estimator.estimate(beatmap, accuracy=accuracy)
            computed = self.estimator.compute_accuracy(beatmap, stats)
            assert abs(computed - accuracy) <= 0.25 / 100 + 1e-9

    def test_monotonic(self):
        beatmap = taiko_beatmap(100)
        computed = [
            self.estimator.compute_accuracy(beatmap, self.estimator.estimate(beatmap, accuracy=a))
            for a in sorted(ACCURACY_STEPS)
        ]
        assert computed == sorted(computed)

    def test_goods_override(self):
        stats = self.estimator.estimate(taiko_beatmap(100), misses=5, goods=10)
        assert stats[HitResult.GREAT] == 85
        assert stats[HitResult.OK] == 10

    def test_forward_accuracy(self):
        stats = {HitResult.GREAT: 8, HitResult.OK: 1, HitResult.MISS: 1}
        assert self.estimator.compute_accuracy(taiko_beatmap(10), stats) == pytest.approx(17 / 20)


class TestCatch:
    estimator = CatchHitResultEstimator()

    @pytest.fixture
    def beatmap(self) -> Beatmap:
        """45 fruits, 5 droplets and 10 tiny droplets; max combo 50."""
        return catch_beatmap(fruits=40, juice_streams=5, droplets_per_stream=1, tiny_per_stream=2)

    def test_scenario_full_accuracy(self, beatmap):
        assert beatmap.max_combo == 50
        stats = self.estimator.estimate(beatmap, accuracy=1.0)

        assert stats == {
            HitResult.GREAT: 45,
            HitResult.LARGE_TICK_HIT: 5,
            HitResult.SMALL_TICK_HIT: 10,
            HitResult.SMALL_TICK_MISS: 0,
            HitResult.MISS: 0,
        }
        assert self.estimator.compute_accuracy(beatmap, stats) == 1.0

    def test_misses_taken_from_droplets_first(self, beatmap):
        stats = self.estimator.estimate(beatmap, accuracy=0.9, misses=7)
        assert stats[HitResult.LARGE_TICK_HIT] == 0
        assert stats[HitResult.GREAT] == 43

    def test_tiny_droplets_clamped(self, beatmap):
        """Accuracy below the caught fruits and droplets misses every tiny droplet."""
        stats = self.estimator.estimate(beatmap, accuracy=0.1)
        assert stats[HitResult.SMALL_TICK_HIT] == 0
        assert stats[HitResult.SMALL_TICK_MISS] == 10

    def test_conservation(self, beatmap):
        for accuracy in ACCURACY_STEPS:
            stats = self.estimator.estimate(beatmap, accuracy=accuracy, misses=2)
            assert self.estimator.count_judgements(stats) == 60

    def test_round_trip(self, beatmap):
        # Reachable range without misses is [50/60, 1]
        for accuracy in [1.0, 0.98, 0.95, 0.9, 0.86]:
            stats = self.estimator.estimate(beatmap, accuracy=accuracy)
            computed = self.estimator.compute_accuracy(beatmap, stats)
            assert abs(computed - accuracy) <= 0.5 / 60 + 1e-9

    def test_monotonic(self, beatmap):
        computed = [
            self.estimator.compute_accuracy(beatmap, self.estimator.estimate(beatmap, accuracy=a))
            for a in sorted(ACCURACY_STEPS)
        ]
        assert computed == sorted(computed)

    def test_misses_that_do_not_fit_raise(self):
        beatmap = catch_beatmap(fruits=2, juice_streams=0)
        with pytest.raises(DegenerateInputError):
            self.estimator.estimate(catch_beatmap(fruits=0, juice_streams=1), misses=3, mehs=0)
        with pytest.raises(DegenerateInputError):
            self.estimator.estimate(beatmap, accuracy=1.0, misses=3)

    def test_overrides(self, beatmap):
        stats = self.estimator.estimate(beatmap, misses=1, goods=5, mehs=8)
        assert stats[HitResult.GREAT] == 44
        assert stats[HitResult.LARGE_TICK_HIT] == 5
        assert stats[HitResult.SMALL_TICK_HIT] == 8
        assert stats[HitResult.SMALL_TICK_MISS] == 2

    def test_misses_include_large_tick_misses(self):
        stats = {HitResult.MISS: 2, HitResult.LARGE_TICK_MISS: 1}
        assert self.estimator.misses_from(stats) == 3


class TestMania:
    estimator = ManiaHitResultEstimator()

    def test_scenario_full_accuracy(self):
        stats = self.estimator.estimate(mania_beatmap(10), accuracy=1.0)
        assert stats[HitResult.PERFECT] == 10
        assert self.estimator.count_judgements(stats) == 10

    def test_hold_notes_count_twice(self):
        beatmap = mania_beatmap(8, hold_notes=2)
        assert self.estimator.count_judged_objects(beatmap) == 12
        assert self.estimator.count_judged_objects(beatmap, ModSet.of([classic_mod()])) == 10

    def test_classic_full_accuracy(self):
        mods = ModSet.of(["CL"])
        beatmap = mania_beatmap(10)
        stats = self.estimator.estimate(beatmap, mods, accuracy=1.0)
        assert stats[HitResult.PERFECT] == 10
        assert self.estimator.compute_accuracy(beatmap, stats, mods) == 1.0

    def test_greedy_allocation(self):
        """90% of 10 notes is 549 points; 8 Perfects leave room for one Good and one Ok."""
        stats = self.estimator.estimate(mania_beatmap(10), accuracy=0.9)
        assert stats == {
            HitResult.PERFECT: 8,
            HitResult.GREAT: 0,
            HitResult.GOOD: 1,
            HitResult.OK: 1,
            HitResult.MEH: 0,
            HitResult.MISS: 0,
        }

    def test_conservation(self):
        beatmap = mania_beatmap(90, hold_notes=10)
        for accuracy in ACCURACY_STEPS:
            stats = self.estimator.estimate(beatmap, accuracy=accuracy, misses=5)
            assert self.estimator.count_judgements(stats) == 110

    def test_round_trip(self):
        beatmap = mania_beatmap(100)
        for accuracy in ACCURACY_STEPS:
            stats = self.estimator.estimate(beatmap, accuracy=accuracy)
            computed = self.estimator.compute_accuracy(beatmap, stats)
            assert abs(computed - accuracy) <= 11 / (61 * 100) + 1e-9

    def test_monotonic(self):
        beatmap = mania_beatmap(100)
        computed = [
            self.estimator.compute_accuracy(beatmap, self.estimator.estimate(beatmap, accuracy=a))
            for a in sorted(ACCURACY_STEPS)
        ]
        assert computed == sorted(computed)

    def test_overrides(self):
        stats = self.estimator.estimate(mania_beatmap(10), misses=1, greats=3, goods=1)
        assert stats[HitResult.PERFECT] == 5
        assert stats[HitResult.GREAT] == 3
        assert stats[HitResult.GOOD] == 1
        assert stats[HitResult.OK] == 0

    def test_impossible_overrides(self):
        with pytest.raises(DegenerateInputError):
            self.estimator.estimate(mania_beatmap(5), greats=4, oks=2)

    def test_forward_accuracy(self):
        stats = {HitResult.PERFECT: 1, HitResult.GREAT: 1, HitResult.MISS: 1}
        assert self.estimator.compute_accuracy(mania_beatmap(3), stats) == pytest.approx(
            605 / 915
        )

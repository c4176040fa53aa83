"""osu!standard hit result estimation."""

from collections.abc import Mapping

from ppcalc.exceptions import DegenerateInputError
from ppcalc.models import (
    CLASSIC,
    Beatmap,
    HitObjectType,
    HitResult,
    ModSet,
    NestedObjectType,
    Ruleset,
    Statistics,
)
from ppcalc.services.accuracy.base import (
    HitResultEstimator,
    check_accuracy,
    check_judged_count,
    clamp,
    ensure_non_negative,
    has_overrides,
    require_accuracy,
)


def uses_slider_head_accuracy(mods: ModSet) -> bool:
    """Whether lazer slider judgements (tails, large ticks) are scored.

    Classic mod with ``no_slider_head_accuracy`` (on by default) scores sliders
    the stable way, without those judgements.
    """
    classic = mods.get(CLASSIC)
    if classic is None:
        return True
    return not classic.setting("no_slider_head_accuracy", True)


class OsuHitResultEstimator(HitResultEstimator):
    """Great=6, Ok=2, Meh=1, Miss=0 over one judgement per hit object."""

    ruleset = Ruleset.OSU
    judgements = frozenset(
        {
            HitResult.GREAT,
            HitResult.OK,
            HitResult.MEH,
            HitResult.MISS,
            HitResult.LARGE_TICK_HIT,
            HitResult.LARGE_TICK_MISS,
            HitResult.SMALL_TICK_HIT,
            HitResult.SMALL_TICK_MISS,
            HitResult.SLIDER_TAIL_HIT,
            HitResult.SMALL_BONUS,
            HitResult.LARGE_BONUS,
            HitResult.IGNORE_HIT,
            HitResult.IGNORE_MISS,
        }
    )
    base_judgements = (HitResult.GREAT, HitResult.OK, HitResult.MEH, HitResult.MISS)
    override_results = {"oks": HitResult.OK, "mehs": HitResult.MEH}

    def count_judged_objects(self, beatmap: Beatmap, mods: ModSet | None = None) -> int:
        return len(beatmap.hit_objects)

    def overrides_from(
        self,
        beatmap: Beatmap,
        statistics: Mapping[HitResult, int] | None,
        fill_missing: bool = False,
    ) -> dict[str, int | None]:
        overrides = super().overrides_from(beatmap, statistics, fill_missing)
        statistics = statistics or {}
        overrides["large_tick_misses"] = statistics.get(HitResult.LARGE_TICK_MISS)
        overrides["slider_tail_hits"] = statistics.get(
            HitResult.SLIDER_TAIL_HIT, beatmap.count(HitObjectType.SLIDER)
        )
        return overrides

    def estimate(
        self,
        beatmap: Beatmap,
        mods: ModSet | None = None,
        accuracy: float | None = None,
        misses: int = 0,
        oks: int | None = None,
        mehs: int | None = None,
        large_tick_misses: int | None = None,
        slider_tail_hits: int | None = None,
    ) -> Statistics:
        """Estimate Great/Ok/Meh/Miss counts.

        ``large_tick_misses`` and ``slider_tail_hits`` are recorded as given unless
        the mods score sliders the stable way.
        """
        mods = mods or ModSet()
        check_accuracy(accuracy)
        total = self.count_judged_objects(beatmap, mods)
        check_judged_count(total, misses)

        if has_overrides({"oks": oks, "mehs": mehs}):
            count_ok = oks or 0
            count_meh = mehs or 0
        else:
            count_ok, count_meh, misses = self._distribute(total, require_accuracy(accuracy), misses)

        statistics: Statistics = {
            HitResult.GREAT: total - count_ok - count_meh - misses,
            HitResult.OK: count_ok,
            HitResult.MEH: count_meh,
            HitResult.MISS: misses,
        }

        if uses_slider_head_accuracy(mods):
            if large_tick_misses is not None:
                statistics[HitResult.LARGE_TICK_MISS] = large_tick_misses
            if slider_tail_hits is not None:
                statistics[HitResult.SLIDER_TAIL_HIT] = slider_tail_hits

        return ensure_non_negative(statistics)

    @staticmethod
    def _distribute(total: int, accuracy: float, misses: int) -> tuple[int, int, int]:
        """Split the non-miss judgements into Oks and Mehs.

        Returns:
            (oks, mehs, misses); misses grows when the accuracy is below what
            all-Meh can reach.
        """
        # Pretend the misses never happened and aim for the accuracy of the rest
        relevant_count = total - misses
        if relevant_count == 0:
            return 0, 0, misses
        relevant_accuracy = clamp(accuracy * total / relevant_count, 0.0, 1.0)

        if relevant_accuracy >= 0.25:
            # Zero Mehs at 100%, one Meh per nine Oks at 75%, four per nine at 50%
            ratio = (1 - (relevant_accuracy - 0.25) / 0.75) ** 2
            # From (6*great + 2*ok + meh) / (6*total) with meh = ok * ratio
            ok_estimate = 6 * relevant_count * (1 - relevant_accuracy) / (5 * ratio + 4)
            meh_estimate = ok_estimate * ratio
            count_ok = round(ok_estimate)
            count_meh = round(ok_estimate + meh_estimate) - count_ok
        elif relevant_accuracy >= 1 / 6:
            # No Greats left, everything is Ok or Meh
            ok_estimate = 6 * relevant_count * relevant_accuracy - relevant_count
            meh_estimate = relevant_count - ok_estimate
            count_ok = round(ok_estimate)
            count_meh = round(ok_estimate + meh_estimate) - count_ok
        else:
            # Only Mehs; the rest becomes additional misses
            count_ok = 0
            count_meh = round(6 * relevant_count * relevant_accuracy)
            misses = total - count_meh

        return count_ok, count_meh, misses

    def compute_accuracy(
        self,
        beatmap: Beatmap,
        statistics: Mapping[HitResult, int],
        mods: ModSet | None = None,
    ) -> float:
        count_great = statistics.get(HitResult.GREAT, 0)
        count_ok = statistics.get(HitResult.OK, 0)
        count_meh = statistics.get(HitResult.MEH, 0)
        count_miss = statistics.get(HitResult.MISS, 0)

        total = 6.0 * count_great + 2 * count_ok + count_meh
        maximum = 6.0 * (count_great + count_ok + count_meh + count_miss)

        if HitResult.SLIDER_TAIL_HIT in statistics:
            total += 3 * statistics[HitResult.SLIDER_TAIL_HIT]
            maximum += 3 * beatmap.count(HitObjectType.SLIDER)

        if HitResult.LARGE_TICK_MISS in statistics:
            large_ticks = beatmap.count_nested(
                NestedObjectType.SLIDER_TICK, NestedObjectType.SLIDER_REPEAT
            )
            total += 0.6 * (large_ticks - statistics[HitResult.LARGE_TICK_MISS])
            maximum += 0.6 * large_ticks

        if maximum <= 0:
            raise DegenerateInputError("Cannot compute accuracy of an empty score")
        return clamp(total / maximum, 0.0, 1.0)

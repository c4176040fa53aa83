"""osu!mania hit result estimation."""

from collections.abc import Mapping

from ppcalc.exceptions import DegenerateInputError
from ppcalc.models import Beatmap, HitObjectType, HitResult, ModSet, Ruleset, Statistics
from ppcalc.services.accuracy.base import (
    HitResultEstimator,
    check_accuracy,
    check_judged_count,
    ensure_non_negative,
    has_overrides,
    require_accuracy,
)

# Great=60, Good=40, Ok=20, Meh=10, Miss=0; Perfect is 61, or 60 under Classic
MEH_VALUE = 10
GREAT_STEP = 50
GOOD_STEP = 30
OK_STEP = 10


def perfect_value(mods: ModSet) -> int:
    return 60 if mods.is_classic else 61


class ManiaHitResultEstimator(HitResultEstimator):
    """Greedy top-down allocation of Perfect/Great/Good/Ok/Meh."""

    ruleset = Ruleset.MANIA
    judgements = frozenset(
        {
            HitResult.PERFECT,
            HitResult.GREAT,
            HitResult.GOOD,
            HitResult.OK,
            HitResult.MEH,
            HitResult.MISS,
            HitResult.IGNORE_HIT,
            HitResult.IGNORE_MISS,
        }
    )
    base_judgements = (
        HitResult.PERFECT,
        HitResult.GREAT,
        HitResult.GOOD,
        HitResult.OK,
        HitResult.MEH,
        HitResult.MISS,
    )
    override_results = {
        "greats": HitResult.GREAT,
        "goods": HitResult.GOOD,
        "oks": HitResult.OK,
        "mehs": HitResult.MEH,
    }

    def count_judged_objects(self, beatmap: Beatmap, mods: ModSet | None = None) -> int:
        # One judgement per note, two per hold note (head and tail) outside Classic
        total = len(beatmap.hit_objects)
        if not (mods or ModSet()).is_classic:
            total += beatmap.count(HitObjectType.HOLD_NOTE)
        return total

    def estimate(
        self,
        beatmap: Beatmap,
        mods: ModSet | None = None,
        accuracy: float | None = None,
        misses: int = 0,
        greats: int | None = None,
        oks: int | None = None,
        goods: int | None = None,
        mehs: int | None = None,
    ) -> Statistics:
        mods = mods or ModSet()
        check_accuracy(accuracy)
        total = self.count_judged_objects(beatmap, mods)
        check_judged_count(total, misses)

        if has_overrides({"greats": greats, "oks": oks, "goods": goods, "mehs": mehs}):
            count_perfect = total - (misses + (mehs or 0) + (oks or 0) + (goods or 0) + (greats or 0))
            return ensure_non_negative(
                {
                    HitResult.PERFECT: count_perfect,
                    HitResult.GREAT: greats or 0,
                    HitResult.GOOD: goods or 0,
                    HitResult.OK: oks or 0,
                    HitResult.MEH: mehs or 0,
                    HitResult.MISS: misses,
                }
            )

        perfect = perfect_value(mods)
        target_total = round(require_accuracy(accuracy) * total * perfect)

        # Start by assuming every non-miss is a Meh; delta is what the rest must add
        remaining = total - misses
        delta = max(target_total - MEH_VALUE * remaining, 0)

        count_perfect = min(delta // (perfect - MEH_VALUE), remaining)
        delta -= count_perfect * (perfect - MEH_VALUE)
        remaining -= count_perfect

        count_great = min(delta // GREAT_STEP, remaining)
        delta -= count_great * GREAT_STEP
        remaining -= count_great

        count_good = min(delta // GOOD_STEP, remaining)
        delta -= count_good * GOOD_STEP
        remaining -= count_good

        count_ok = min(delta // OK_STEP, remaining)
        remaining -= count_ok

        return ensure_non_negative(
            {
                HitResult.PERFECT: count_perfect,
                HitResult.GREAT: count_great,
                HitResult.GOOD: count_good,
                HitResult.OK: count_ok,
                HitResult.MEH: remaining,
                HitResult.MISS: misses,
            }
        )

    def compute_accuracy(
        self,
        beatmap: Beatmap,
        statistics: Mapping[HitResult, int],
        mods: ModSet | None = None,
    ) -> float:
        count_perfect = statistics.get(HitResult.PERFECT, 0)
        count_great = statistics.get(HitResult.GREAT, 0)
        count_good = statistics.get(HitResult.GOOD, 0)
        count_ok = statistics.get(HitResult.OK, 0)
        count_meh = statistics.get(HitResult.MEH, 0)
        count_miss = statistics.get(HitResult.MISS, 0)

        perfect_weight = 300 if (mods or ModSet()).is_classic else 305

        total = (
            perfect_weight * count_perfect
            + 300 * count_great
            + 200 * count_good
            + 100 * count_ok
            + 50 * count_meh
        )
        maximum = perfect_weight * (
            count_perfect + count_great + count_good + count_ok + count_meh + count_miss
        )

        if maximum <= 0:
            raise DegenerateInputError("Cannot compute accuracy of an empty score")
        return total / maximum

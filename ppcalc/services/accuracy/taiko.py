"""osu!taiko hit result estimation."""

from collections.abc import Mapping

from ppcalc.exceptions import DegenerateInputError
from ppcalc.models import Beatmap, HitResult, ModSet, Ruleset, Statistics
from ppcalc.services.accuracy.base import (
    HitResultEstimator,
    check_accuracy,
    check_judged_count,
    clamp,
    ensure_non_negative,
    require_accuracy,
)


class TaikoHitResultEstimator(HitResultEstimator):
    """Great=2, Good=1, Miss=0 over every combo-giving hit.

    Taiko's "good" judgement is reported as ``ok`` by the osu! API.
    """

    ruleset = Ruleset.TAIKO
    judgements = frozenset(
        {
            HitResult.GREAT,
            HitResult.OK,
            HitResult.MEH,
            HitResult.MISS,
            HitResult.SMALL_BONUS,
            HitResult.LARGE_BONUS,
            HitResult.IGNORE_HIT,
            HitResult.IGNORE_MISS,
        }
    )
    base_judgements = (HitResult.GREAT, HitResult.OK, HitResult.MEH, HitResult.MISS)
    override_results = {"goods": HitResult.OK}

    def count_judged_objects(self, beatmap: Beatmap, mods: ModSet | None = None) -> int:
        return beatmap.max_combo

    def estimate(
        self,
        beatmap: Beatmap,
        mods: ModSet | None = None,
        accuracy: float | None = None,
        misses: int = 0,
        goods: int | None = None,
    ) -> Statistics:
        check_accuracy(accuracy)
        total = self.count_judged_objects(beatmap, mods)
        check_judged_count(total, misses)

        if goods is not None:
            count_good = goods
            count_great = total - count_good - misses
        else:
            hits = total - misses
            # Great=2, Good=1, Miss=0: every hit is worth at least 1
            target_total = round(require_accuracy(accuracy) * total * 2)
            count_great = int(clamp(target_total - hits, 0, hits))
            count_good = hits - count_great

        return ensure_non_negative(
            {
                HitResult.GREAT: count_great,
                HitResult.OK: count_good,
                HitResult.MEH: 0,
                HitResult.MISS: misses,
            }
        )

    def compute_accuracy(
        self,
        beatmap: Beatmap,
        statistics: Mapping[HitResult, int],
        mods: ModSet | None = None,
    ) -> float:
        count_great = statistics.get(HitResult.GREAT, 0)
        count_good = statistics.get(HitResult.OK, 0)
        count_miss = statistics.get(HitResult.MISS, 0)
        total = count_great + count_good + count_miss

        if total <= 0:
            raise DegenerateInputError("Cannot compute accuracy of an empty score")
        return (2 * count_great + count_good) / (2 * total)

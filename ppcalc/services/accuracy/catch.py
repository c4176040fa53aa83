"""osu!catch hit result estimation."""

from collections.abc import Mapping
from dataclasses import dataclass

from ppcalc.exceptions import DegenerateInputError
from ppcalc.models import (
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
    require_accuracy,
)


@dataclass(frozen=True, slots=True)
class CatchObjectCounts:
    fruits: int
    droplets: int
    tiny_droplets: int
    max_combo: int

    @classmethod
    def of(cls, beatmap: Beatmap) -> "CatchObjectCounts":
        return cls(
            fruits=beatmap.count(HitObjectType.FRUIT)
            + beatmap.count_nested(NestedObjectType.FRUIT),
            droplets=beatmap.count_nested(NestedObjectType.DROPLET),
            tiny_droplets=beatmap.count_nested(NestedObjectType.TINY_DROPLET),
            max_combo=beatmap.max_combo,
        )

    @property
    def judged(self) -> int:
        return self.fruits + self.droplets + self.tiny_droplets


class CatchHitResultEstimator(HitResultEstimator):
    """Fruits (``great``), droplets (``large_tick_hit``) and tiny droplets (``small_tick_hit``).

    Every caught object is worth the same; accuracy is caught objects over all
    objects, tiny droplets included.
    """

    ruleset = Ruleset.CATCH
    judgements = frozenset(
        {
            HitResult.GREAT,
            HitResult.LARGE_TICK_HIT,
            HitResult.LARGE_TICK_MISS,
            HitResult.SMALL_TICK_HIT,
            HitResult.SMALL_TICK_MISS,
            HitResult.MISS,
            HitResult.LARGE_BONUS,
            HitResult.IGNORE_HIT,
            HitResult.IGNORE_MISS,
        }
    )
    base_judgements = (
        HitResult.GREAT,
        HitResult.LARGE_TICK_HIT,
        HitResult.SMALL_TICK_HIT,
        HitResult.SMALL_TICK_MISS,
        HitResult.MISS,
    )
    override_results = {"goods": HitResult.LARGE_TICK_HIT, "mehs": HitResult.SMALL_TICK_HIT}

    def count_judged_objects(self, beatmap: Beatmap, mods: ModSet | None = None) -> int:
        return CatchObjectCounts.of(beatmap).judged

    def misses_from(self, statistics: Mapping[HitResult, int] | None) -> int:
        # Missed droplets break combo like missed fruits
        if not statistics:
            return 0
        return statistics.get(HitResult.MISS, 0) + statistics.get(HitResult.LARGE_TICK_MISS, 0)

    def estimate(
        self,
        beatmap: Beatmap,
        mods: ModSet | None = None,
        accuracy: float | None = None,
        misses: int = 0,
        mehs: int | None = None,
        goods: int | None = None,
    ) -> Statistics:
        """Estimate fruit, droplet and tiny droplet counts.

        Misses are taken from droplets first, then from fruits. Too many misses
        or an override that does not fit the beatmap raise DegenerateInputError.
        """
        check_accuracy(accuracy)
        counts = CatchObjectCounts.of(beatmap)
        check_judged_count(counts.judged, misses)

        count_droplets = goods if goods is not None else max(0, counts.droplets - misses)
        count_fruits = counts.fruits - (misses - (counts.droplets - count_droplets))
        if count_fruits < 0 or count_droplets < 0:
            raise DegenerateInputError(
                f"{misses} misses do not fit {counts.fruits} fruits and {counts.droplets} droplets"
            )

        if mehs is not None:
            count_tiny_droplets = mehs
        else:
            caught = count_fruits + count_droplets
            target_hits = round(
                require_accuracy(accuracy) * (counts.max_combo + counts.tiny_droplets)
            )
            count_tiny_droplets = int(clamp(target_hits, caught, caught + counts.tiny_droplets)) - caught

        return ensure_non_negative(
            {
                HitResult.GREAT: count_fruits,
                HitResult.LARGE_TICK_HIT: count_droplets,
                HitResult.SMALL_TICK_HIT: count_tiny_droplets,
                HitResult.SMALL_TICK_MISS: counts.tiny_droplets - count_tiny_droplets,
                HitResult.MISS: misses,
            }
        )

    def compute_accuracy(
        self,
        beatmap: Beatmap,
        statistics: Mapping[HitResult, int],
        mods: ModSet | None = None,
    ) -> float:
        hits = (
            statistics.get(HitResult.GREAT, 0)
            + statistics.get(HitResult.LARGE_TICK_HIT, 0)
            + statistics.get(HitResult.SMALL_TICK_HIT, 0)
        )
        total = (
            hits
            + statistics.get(HitResult.MISS, 0)
            + statistics.get(HitResult.LARGE_TICK_MISS, 0)
            + statistics.get(HitResult.SMALL_TICK_MISS, 0)
        )

        if total <= 0:
            raise DegenerateInputError("Cannot compute accuracy of an empty score")
        return hits / total

"""Base class for ruleset-specific hit result estimators."""

import math
from abc import ABC, abstractmethod
from collections.abc import Mapping
from typing import Any, ClassVar

from ppcalc.exceptions import DegenerateInputError, InvalidRequestError
from ppcalc.models import Beatmap, HitResult, ModSet, Ruleset, Statistics


class HitResultEstimator(ABC):
    """Turns a target accuracy into hit result counts and back.

    Subclasses implement one ruleset each. ``estimate`` honours per-category
    overrides verbatim when any is given and fills the remaining category by
    conservation; otherwise it inverts the ruleset's accuracy formula.
    """

    ruleset: ClassVar[Ruleset]
    # Results a score of this ruleset may contain
    judgements: ClassVar[frozenset[HitResult]]
    # Results that together account for every judged object exactly once
    base_judgements: ClassVar[tuple[HitResult, ...]]
    # ``estimate`` keyword -> result it overrides
    override_results: ClassVar[dict[str, HitResult]]

    @abstractmethod
    def count_judged_objects(self, beatmap: Beatmap, mods: ModSet | None = None) -> int:
        """Number of judgements the base results of a full score add up to."""

    @abstractmethod
    def estimate(
        self,
        beatmap: Beatmap,
        mods: ModSet | None = None,
        accuracy: float | None = None,
        misses: int = 0,
        **overrides: Any,
    ) -> Statistics:
        """Build hit result counts reaching ``accuracy`` with ``misses`` misses."""

    @abstractmethod
    def compute_accuracy(
        self,
        beatmap: Beatmap,
        statistics: Mapping[HitResult, int],
        mods: ModSet | None = None,
    ) -> float:
        """Accuracy in ``[0, 1]`` of a complete set of hit result counts."""

    def count_judgements(self, statistics: Mapping[HitResult, int]) -> int:
        return sum(statistics.get(result, 0) for result in self.base_judgements)

    def misses_from(self, statistics: Mapping[HitResult, int] | None) -> int:
        if not statistics:
            return 0
        return statistics.get(HitResult.MISS, 0)

    def overrides_from(
        self,
        beatmap: Beatmap,
        statistics: Mapping[HitResult, int] | None,
        fill_missing: bool = False,
    ) -> dict[str, int | None]:
        """Extract the ``estimate`` overrides present in a caller-supplied breakdown.

        Args:
            beatmap: Beatmap the score was set on
            statistics: Caller-supplied hit result counts, if any
            fill_missing: Treat absent categories as zero (the osu! API omits zeros)

        Returns:
            Keyword arguments for ``estimate``
        """
        overrides: dict[str, int | None] = {}
        for name, result in self.override_results.items():
            if statistics is not None and result in statistics:
                overrides[name] = statistics[result]
            elif fill_missing:
                overrides[name] = 0
        return overrides

    def validate_statistics(self, statistics: Mapping[HitResult, int]) -> None:
        """Reject negative counts and non-zero counts outside this ruleset's vocabulary.

        Raises:
            InvalidRequestError: If the statistics cannot belong to this ruleset
        """
        for result, count in statistics.items():
            if count < 0:
                raise InvalidRequestError(f"Negative count for {result}: {count}")
            if count and result not in self.judgements:
                raise InvalidRequestError(
                    f"{result} is not a {self.ruleset.name.lower()} judgement"
                )


def has_overrides(overrides: Mapping[str, int | None]) -> bool:
    return any(v is not None for v in overrides.values())


def require_accuracy(accuracy: float | None) -> float:
    if accuracy is None:
        raise InvalidRequestError("Accuracy is required when no hit result counts are given")
    return accuracy


def check_accuracy(accuracy: float | None) -> None:
    if accuracy is None:
        return
    if math.isnan(accuracy) or not 0.0 <= accuracy <= 1.0:
        raise DegenerateInputError(f"Accuracy must be within [0, 1], got {accuracy}")


def check_judged_count(total: int, misses: int) -> None:
    if total <= 0:
        raise DegenerateInputError("Beatmap has no judged objects")
    if misses < 0:
        raise DegenerateInputError(f"Miss count must not be negative, got {misses}")
    if misses > total:
        raise DegenerateInputError(f"Miss count {misses} exceeds {total} judged objects")


def ensure_non_negative(statistics: Statistics) -> Statistics:
    """Surface impossible inputs instead of clamping derived counts to zero."""
    negative = {str(k): v for k, v in statistics.items() if v < 0}
    if negative:
        raise DegenerateInputError(f"Inputs lead to negative hit result counts: {negative}")
    return statistics


def clamp(value: float, low: float, high: float) -> float:
    return min(max(value, low), high)

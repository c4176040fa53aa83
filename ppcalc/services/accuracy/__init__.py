"""Hit result estimation and accuracy formulas for the four rulesets."""

from ppcalc.exceptions import InvalidRequestError
from ppcalc.models import Ruleset
from ppcalc.services.accuracy.base import HitResultEstimator
from ppcalc.services.accuracy.catch import CatchHitResultEstimator
from ppcalc.services.accuracy.mania import ManiaHitResultEstimator
from ppcalc.services.accuracy.osu import OsuHitResultEstimator
from ppcalc.services.accuracy.taiko import TaikoHitResultEstimator

_ESTIMATORS: dict[Ruleset, HitResultEstimator] = {
    Ruleset.OSU: OsuHitResultEstimator(),
    Ruleset.TAIKO: TaikoHitResultEstimator(),
    Ruleset.CATCH: CatchHitResultEstimator(),
    Ruleset.MANIA: ManiaHitResultEstimator(),
}


def get_estimator(ruleset: Ruleset | int) -> HitResultEstimator:
    """Return the estimator for a ruleset (or its integer mode id).

    Raises:
        InvalidRequestError: For an unknown ruleset id
    """
    try:
        return _ESTIMATORS[Ruleset(ruleset)]
    except ValueError as e:
        raise InvalidRequestError(f"Unknown ruleset: {ruleset}") from e


__all__ = [
    "CatchHitResultEstimator",
    "HitResultEstimator",
    "ManiaHitResultEstimator",
    "OsuHitResultEstimator",
    "TaikoHitResultEstimator",
    "get_estimator",
]

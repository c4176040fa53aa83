"""Domain models shared across ppcalc services."""

from ppcalc.models.beatmap import (
    Beatmap,
    HitObject,
    HitObjectType,
    NestedObject,
    NestedObjectType,
)
from ppcalc.models.mods import CLASSIC, NON_DETERMINISTIC_MODS, Mod, ModSet, classic_mod
from ppcalc.models.scoring import (
    BASIC_HIT_RESULTS,
    CalculationResult,
    HitResult,
    Ruleset,
    ScoreInfo,
    Statistics,
    count_basic_hit_results,
    statistics_from_api,
)

__all__ = [
    "BASIC_HIT_RESULTS",
    "CLASSIC",
    "NON_DETERMINISTIC_MODS",
    "Beatmap",
    "CalculationResult",
    "HitObject",
    "HitObjectType",
    "HitResult",
    "Mod",
    "ModSet",
    "NestedObject",
    "NestedObjectType",
    "Ruleset",
    "ScoreInfo",
    "Statistics",
    "classic_mod",
    "count_basic_hit_results",
    "statistics_from_api",
]

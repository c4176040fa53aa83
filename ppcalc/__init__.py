"""Performance point calculation for osu! scores with cached beatmap retrieval."""

from ppcalc.models import CalculationResult, HitResult, Mod, ModSet, Ruleset, statistics_from_api
from ppcalc.services.beatmaps import BeatmapCache
from ppcalc.services.calculator import PerformanceCalculator, RulesetBackend, create_calculator
from ppcalc.services.memo import ArtifactMemoizer

__version__ = "0.1.0"

__all__ = [
    "ArtifactMemoizer",
    "BeatmapCache",
    "CalculationResult",
    "HitResult",
    "Mod",
    "ModSet",
    "PerformanceCalculator",
    "Ruleset",
    "RulesetBackend",
    "create_calculator",
    "statistics_from_api",
]

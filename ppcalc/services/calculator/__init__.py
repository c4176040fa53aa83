"""Performance calculation orchestration."""

from ppcalc.services.calculator.backend import (
    DifficultyAttributes,
    PerformanceAttributes,
    RulesetBackend,
)
from ppcalc.services.calculator.calculator import PerformanceCalculator, create_calculator

__all__ = [
    "DifficultyAttributes",
    "PerformanceAttributes",
    "PerformanceCalculator",
    "RulesetBackend",
    "create_calculator",
]

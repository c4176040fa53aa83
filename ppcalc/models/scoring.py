"""Scoring models: rulesets, hit results and calculation records."""

from collections.abc import Mapping
from dataclasses import dataclass, field
from enum import IntEnum, StrEnum
from typing import Any

from pydantic import BaseModel, ConfigDict

from ppcalc.models.mods import ModSet


class Ruleset(IntEnum):
    """Game mode. Values match the osu! API ``mode_int``."""

    OSU = 0
    TAIKO = 1
    CATCH = 2
    MANIA = 3


class HitResult(StrEnum):
    """Judgement outcomes. Values are the osu! API v2 ``statistics`` keys."""

    MISS = "miss"
    MEH = "meh"
    OK = "ok"
    GOOD = "good"
    GREAT = "great"
    PERFECT = "perfect"
    SMALL_TICK_MISS = "small_tick_miss"
    SMALL_TICK_HIT = "small_tick_hit"
    LARGE_TICK_MISS = "large_tick_miss"
    LARGE_TICK_HIT = "large_tick_hit"
    SMALL_BONUS = "small_bonus"
    LARGE_BONUS = "large_bonus"
    IGNORE_MISS = "ignore_miss"
    IGNORE_HIT = "ignore_hit"
    SLIDER_TAIL_HIT = "slider_tail_hit"


type Statistics = dict[HitResult, int]

# Results that correspond to one top-level judgement each; their sum is the
# number of objects a (possibly failed) score has gone through.
BASIC_HIT_RESULTS = (
    HitResult.MISS,
    HitResult.MEH,
    HitResult.OK,
    HitResult.GOOD,
    HitResult.GREAT,
    HitResult.PERFECT,
)


def count_basic_hit_results(statistics: Mapping[HitResult, int]) -> int:
    return sum(statistics.get(result, 0) for result in BASIC_HIT_RESULTS)


def statistics_from_api(payload: Mapping[str, Any]) -> Statistics:
    """Convert an osu! API v2 ``statistics`` object into a Statistics map.

    Unknown keys and null values are skipped.
    """
    statistics: Statistics = {}
    for key, value in payload.items():
        if value is None:
            continue
        try:
            result = HitResult(key)
        except ValueError:
            continue
        statistics[result] = int(value)
    return statistics


@dataclass(slots=True)
class ScoreInfo:
    """Score handed to the performance backend."""

    ruleset: Ruleset
    accuracy: float
    max_combo: int
    mods: ModSet = field(default_factory=ModSet)
    statistics: Statistics = field(default_factory=dict)
    passed: bool = True


class CalculationResult(BaseModel):
    """Outcome of one performance calculation request."""

    model_config = ConfigDict(arbitrary_types_allowed=True)

    pp: float
    accuracy: float
    difficulty_attributes: Any
    beatmap_max_combo: int
    beatmap_hit_objects_count: int
    score_hit_results_count: int
    statistics: dict[HitResult, int]

"""Interfaces of the ruleset collaborators the calculator delegates to.

Decoding the ``.osu`` grammar and the difficulty/performance formulas live
outside this package. A backend adapts them to these protocols; every method
is synchronous and CPU-bound, and is called from a worker thread.
"""

from typing import Protocol, runtime_checkable

from ppcalc.models import Beatmap, ModSet, Ruleset, ScoreInfo


@runtime_checkable
class DifficultyAttributes(Protocol):
    star_rating: float
    max_combo: int


@runtime_checkable
class PerformanceAttributes(Protocol):
    total: float


class RulesetBackend(Protocol):
    def decode(self, content: bytes) -> Beatmap:
        """Decode raw ``.osu`` content into a beatmap."""
        ...

    def create_playable(self, beatmap: Beatmap, ruleset: Ruleset, mods: ModSet) -> Beatmap:
        """Convert ``beatmap`` to ``ruleset`` and apply the mods' transforms."""
        ...

    def calculate_difficulty(
        self, ruleset: Ruleset, beatmap: Beatmap, mods: ModSet
    ) -> DifficultyAttributes: ...

    def calculate_performance(
        self, ruleset: Ruleset, score: ScoreInfo, attributes: DifficultyAttributes
    ) -> PerformanceAttributes: ...

"""Parsed beatmap model consumed by the estimators and the calculator.

The ``.osu`` grammar itself is decoded by an external backend; these classes are
the narrow surface the package needs: hit objects, their nested objects and a
max combo.
"""

from collections.abc import Iterator
from dataclasses import dataclass, field
from enum import StrEnum


class HitObjectType(StrEnum):
    """Top-level hit object kinds across all four rulesets."""

    CIRCLE = "circle"
    SLIDER = "slider"
    SPINNER = "spinner"
    HIT = "hit"
    DRUM_ROLL = "drum_roll"
    SWELL = "swell"
    FRUIT = "fruit"
    JUICE_STREAM = "juice_stream"
    BANANA_SHOWER = "banana_shower"
    NOTE = "note"
    HOLD_NOTE = "hold_note"

    @property
    def affects_combo(self) -> bool:
        return self in _COMBO_HIT_OBJECTS


class NestedObjectType(StrEnum):
    """Sub-objects generated inside a hit object (ticks, tails, droplets)."""

    SLIDER_HEAD = "slider_head"
    SLIDER_TICK = "slider_tick"
    SLIDER_REPEAT = "slider_repeat"
    SLIDER_TAIL = "slider_tail"
    FRUIT = "fruit"
    DROPLET = "droplet"
    TINY_DROPLET = "tiny_droplet"
    BANANA = "banana"
    HOLD_HEAD = "hold_head"
    HOLD_TAIL = "hold_tail"
    DRUM_ROLL_TICK = "drum_roll_tick"
    SWELL_TICK = "swell_tick"

    @property
    def affects_combo(self) -> bool:
        return self in _COMBO_NESTED_OBJECTS


_COMBO_HIT_OBJECTS = frozenset(
    {
        HitObjectType.CIRCLE,
        HitObjectType.SPINNER,
        HitObjectType.HIT,
        HitObjectType.FRUIT,
        HitObjectType.NOTE,
    }
)

_COMBO_NESTED_OBJECTS = frozenset(
    {
        NestedObjectType.SLIDER_HEAD,
        NestedObjectType.SLIDER_TICK,
        NestedObjectType.SLIDER_REPEAT,
        NestedObjectType.SLIDER_TAIL,
        NestedObjectType.FRUIT,
        NestedObjectType.DROPLET,
        NestedObjectType.HOLD_HEAD,
        NestedObjectType.HOLD_TAIL,
    }
)


@dataclass(frozen=True, slots=True)
class NestedObject:
    type: NestedObjectType
    start_time: float = 0.0


@dataclass(frozen=True, slots=True)
class HitObject:
    """A timed interactive element, possibly carrying nested sub-objects."""

    type: HitObjectType
    start_time: float = 0.0
    nested: tuple[NestedObject, ...] = ()

    @property
    def combo(self) -> int:
        """Combo this object contributes when every part of it is hit."""
        own = 1 if self.type.affects_combo else 0
        return own + sum(1 for n in self.nested if n.type.affects_combo)


@dataclass(slots=True)
class Beatmap:
    """A decoded beatmap.

    Produced by the decoding backend and owned by the memoizer entry that
    stored it; treat as read-only once returned.
    """

    hit_objects: list[HitObject] = field(default_factory=list)
    beatmap_id: int | None = None
    version: int | None = None

    def __len__(self) -> int:
        return len(self.hit_objects)

    @property
    def max_combo(self) -> int:
        return sum(h.combo for h in self.hit_objects)

    def count(self, *types: HitObjectType) -> int:
        """Count top-level hit objects of the given types."""
        return sum(1 for h in self.hit_objects if h.type in types)

    def count_nested(self, *types: NestedObjectType) -> int:
        """Count nested objects of the given types across all hit objects."""
        return sum(1 for n in self.iter_nested() if n.type in types)

    def iter_nested(self) -> Iterator[NestedObject]:
        for hit_object in self.hit_objects:
            yield from hit_object.nested

    def limited(self, hit_objects_limit: int | None) -> "Beatmap":
        """Return a copy truncated to the first ``hit_objects_limit`` hit objects.

        Used for failed plays, where the score only covers part of the map.
        """
        if hit_objects_limit is None:
            return self
        return Beatmap(
            hit_objects=self.hit_objects[:hit_objects_limit],
            beatmap_id=self.beatmap_id,
            version=self.version,
        )

"""Shared fixtures: beatmap builders, a fake ruleset backend and a mocked remote store."""

from collections.abc import Callable
from dataclasses import dataclass, field
from pathlib import Path

import httpx
import pytest
import pytest_asyncio

from ppcalc.models import (
    Beatmap,
    HitObject,
    HitObjectType,
    ModSet,
    NestedObject,
    NestedObjectType,
    Ruleset,
    ScoreInfo,
)
from ppcalc.services.beatmaps import BeatmapCache
from ppcalc.services.calculator import PerformanceCalculator
from ppcalc.services.memo import ArtifactMemoizer

BEATMAP_CONTENT = b"osu file format v14\n\n[General]\nMode: 0\n\n[HitObjects]\n"


# ===================================================================
# Beatmap builders
# ===================================================================


def osu_beatmap(
    circles: int = 0,
    sliders: int = 0,
    ticks_per_slider: int = 0,
    repeats_per_slider: int = 0,
    spinners: int = 0,
) -> Beatmap:
    """Build an osu!standard beatmap; every slider has a head and a tail."""
    hit_objects = [HitObject(HitObjectType.CIRCLE, start_time=i) for i in range(circles)]
    for i in range(sliders):
        nested = (
            (NestedObject(NestedObjectType.SLIDER_HEAD),)
            + tuple(NestedObject(NestedObjectType.SLIDER_TICK) for _ in range(ticks_per_slider))
            + tuple(
                NestedObject(NestedObjectType.SLIDER_REPEAT) for _ in range(repeats_per_slider)
            )
            + (NestedObject(NestedObjectType.SLIDER_TAIL),)
        )
        hit_objects.append(HitObject(HitObjectType.SLIDER, start_time=circles + i, nested=nested))
    hit_objects.extend(HitObject(HitObjectType.SPINNER) for _ in range(spinners))
    return Beatmap(hit_objects=hit_objects)


def taiko_beatmap(hits: int, drum_rolls: int = 0) -> Beatmap:
    hit_objects = [HitObject(HitObjectType.HIT, start_time=i) for i in range(hits)]
    hit_objects.extend(
        HitObject(
            HitObjectType.DRUM_ROLL,
            nested=(NestedObject(NestedObjectType.DRUM_ROLL_TICK),) * 4,
        )
        for _ in range(drum_rolls)
    )
    return Beatmap(hit_objects=hit_objects)


def catch_beatmap(
    fruits: int,
    juice_streams: int = 0,
    droplets_per_stream: int = 1,
    tiny_per_stream: int = 2,
) -> Beatmap:
    """Build a catch beatmap; each juice stream carries one nested fruit."""
    hit_objects = [HitObject(HitObjectType.FRUIT, start_time=i) for i in range(fruits)]
    for _ in range(juice_streams):
        nested = (
            (NestedObject(NestedObjectType.FRUIT),)
            + (NestedObject(NestedObjectType.DROPLET),) * droplets_per_stream
            + (NestedObject(NestedObjectType.TINY_DROPLET),) * tiny_per_stream
        )
        hit_objects.append(HitObject(HitObjectType.JUICE_STREAM, nested=nested))
    return Beatmap(hit_objects=hit_objects)


def mania_beatmap(notes: int, hold_notes: int = 0) -> Beatmap:
    hit_objects = [HitObject(HitObjectType.NOTE, start_time=i) for i in range(notes)]
    hit_objects.extend(
        HitObject(
            HitObjectType.HOLD_NOTE,
            nested=(
                NestedObject(NestedObjectType.HOLD_HEAD),
                NestedObject(NestedObjectType.HOLD_TAIL),
            ),
        )
        for _ in range(hold_notes)
    )
    return Beatmap(hit_objects=hit_objects)


# ===================================================================
# Fake ruleset backend
# ===================================================================


@dataclass
class FakeDifficultyAttributes:
    star_rating: float
    max_combo: int


@dataclass
class FakePerformanceAttributes:
    total: float


@dataclass
class FakeBackend:
    """Returns a fixed beatmap and derives attributes from simple counts."""

    beatmap: Beatmap
    decode_calls: int = 0
    playable_calls: int = 0
    difficulty_calls: int = 0
    scores: list[ScoreInfo] = field(default_factory=list)

    def decode(self, content: bytes) -> Beatmap:
        self.decode_calls += 1
        return Beatmap(hit_objects=list(self.beatmap.hit_objects))

    def create_playable(self, beatmap: Beatmap, ruleset: Ruleset, mods: ModSet) -> Beatmap:
        self.playable_calls += 1
        return Beatmap(hit_objects=list(beatmap.hit_objects))

    def calculate_difficulty(
        self, ruleset: Ruleset, beatmap: Beatmap, mods: ModSet
    ) -> FakeDifficultyAttributes:
        self.difficulty_calls += 1
        return FakeDifficultyAttributes(star_rating=len(beatmap) / 10, max_combo=beatmap.max_combo)

    def calculate_performance(
        self, ruleset: Ruleset, score: ScoreInfo, attributes: FakeDifficultyAttributes
    ) -> FakePerformanceAttributes:
        self.scores.append(score)
        return FakePerformanceAttributes(total=attributes.star_rating * score.accuracy * 100)


# ===================================================================
# Remote store and cache
# ===================================================================


class RemoteStore:
    """Callable handler for httpx.MockTransport that counts requests.

    Serves the given (status, content) pairs in order, repeating the last one.
    """

    def __init__(self, responses: list[tuple[int, bytes]] | None = None):
        self.requests: list[httpx.Request] = []
        self._responses = responses or [(200, BEATMAP_CONTENT)]

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        index = min(len(self.requests), len(self._responses)) - 1
        status_code, content = self._responses[index]
        return httpx.Response(status_code, content=content)

    @property
    def calls(self) -> int:
        return len(self.requests)


@pytest.fixture
def remote_store() -> RemoteStore:
    """Remote store serving a valid beatmap for every id."""
    return RemoteStore()


@pytest.fixture
def cache_dir(tmp_path: Path) -> Path:
    """Return a temporary directory for beatmap files."""
    return tmp_path / "beatmaps"


@pytest.fixture
def make_cache(cache_dir: Path) -> Callable[..., BeatmapCache]:
    """Factory for a BeatmapCache backed by a mock transport."""

    def _make(handler, **kwargs) -> BeatmapCache:
        client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
        kwargs.setdefault("retry_delay", 0)
        return BeatmapCache(base_dir=cache_dir, client=client, **kwargs)

    return _make


@pytest_asyncio.fixture
async def beatmap_cache(make_cache, remote_store):
    """BeatmapCache talking to ``remote_store``."""
    cache = make_cache(remote_store)
    yield cache
    await cache.close()
    await cache._client.aclose()


@pytest.fixture
def make_calculator(
    beatmap_cache: BeatmapCache,
) -> Callable[..., tuple[PerformanceCalculator, FakeBackend]]:
    """Factory for a calculator over a fake backend serving ``beatmap``."""

    def _make(beatmap: Beatmap, **kwargs) -> tuple[PerformanceCalculator, FakeBackend]:
        backend = FakeBackend(beatmap)
        kwargs.setdefault("memoizer", ArtifactMemoizer())
        return PerformanceCalculator(backend, beatmap_cache, **kwargs), backend

    return _make

"""Beatmap retrieval: remote download, disk/memory caching and decoding."""

from ppcalc.services.beatmaps.cache import BeatmapCache
from ppcalc.services.beatmaps.models import CachedBeatmap
from ppcalc.services.beatmaps.parser import BeatmapDecoder, parse_beatmap

__all__ = [
    "BeatmapCache",
    "BeatmapDecoder",
    "CachedBeatmap",
    "parse_beatmap",
]

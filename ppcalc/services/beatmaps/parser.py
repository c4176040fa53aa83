"""Decode beatmap bytes through the backend and apply the failed-play object limit."""

from typing import Protocol

from ppcalc.models import Beatmap
from ppcalc.utils.logger import logger


class BeatmapDecoder(Protocol):
    def decode(self, content: bytes) -> Beatmap: ...


def parse_beatmap(
    decoder: BeatmapDecoder,
    content: bytes,
    hit_objects_limit: int | None = None,
) -> Beatmap:
    """Decode ``content`` and keep only the first ``hit_objects_limit`` hit objects.

    Format and version sniffing are the decoder's responsibility.
    """
    try:
        beatmap = decoder.decode(content)
    except Exception as e:
        logger.info(f"Error parsing beatmap: {e}")
        raise

    if hit_objects_limit is not None:
        beatmap = beatmap.limited(hit_objects_limit)
    return beatmap

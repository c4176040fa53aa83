"""Memoization of derived beatmap artifacts."""

from ppcalc.services.memo.memoizer import (
    ArtifactKind,
    ArtifactMemoizer,
    DifficultyKey,
    MemoizerStats,
)

__all__ = ["ArtifactKind", "ArtifactMemoizer", "DifficultyKey", "MemoizerStats"]

"""Performance calculation pipeline.

fetch -> parse (+ object limit) -> playable beatmap -> resolve statistics
-> difficulty attributes -> performance attributes -> CalculationResult
"""

import asyncio
import uuid
from collections.abc import Iterable, Mapping
from typing import Any

from ppcalc.exceptions import CalculationTimeoutError, InvalidRequestError, PPCalcError
from ppcalc.models import (
    Beatmap,
    CalculationResult,
    HitResult,
    Mod,
    ModSet,
    Ruleset,
    ScoreInfo,
    Statistics,
    count_basic_hit_results,
)
from ppcalc.services.accuracy import HitResultEstimator, get_estimator
from ppcalc.services.beatmaps import BeatmapCache, parse_beatmap
from ppcalc.services.calculator.backend import DifficultyAttributes, RulesetBackend
from ppcalc.services.memo import ArtifactKind, ArtifactMemoizer, DifficultyKey
from ppcalc.settings import Settings
from ppcalc.utils.logger import logger

DEFAULT_CALCULATION_TIMEOUT = 30.0


class PerformanceCalculator:
    """Computes performance points for a (possibly hypothetical) score.

    The beatmap cache and the memoizer are injected so that every calculator in
    a process can share them; the backend supplies decoding and the ruleset
    formulas.
    """

    def __init__(
        self,
        backend: RulesetBackend,
        beatmap_cache: BeatmapCache,
        memoizer: ArtifactMemoizer | None = None,
        timeout: float = DEFAULT_CALCULATION_TIMEOUT,
    ):
        self._backend = backend
        self._beatmap_cache = beatmap_cache
        self._memoizer = memoizer or ArtifactMemoizer()
        self._timeout = timeout

    @property
    def memoizer(self) -> ArtifactMemoizer:
        return self._memoizer

    async def calculate(
        self,
        beatmap_id: int,
        ruleset: Ruleset | int = Ruleset.OSU,
        accuracy: float | None = None,
        passed: bool = True,
        max_combo: int | None = None,
        mods: ModSet | Iterable[Mod | str] | None = None,
        statistics: Mapping[HitResult, int] | None = None,
    ) -> CalculationResult:
        """Calculate performance points for a score on a beatmap.

        Args:
            beatmap_id: Beatmap ID on the remote store
            ruleset: Ruleset (or osu! API mode id) to calculate for
            accuracy: Target accuracy in [0, 1]. If None, derived from ``statistics``,
                or 1.0 when no statistics are given either
            passed: False for a failed play; only the objects the score went
                through are considered, so ``statistics`` is required
            max_combo: Score max combo. Defaults to the beatmap max combo
            mods: Mods of the score
            statistics: Hit result counts of the score, if known

        Returns:
            Calculation result with pp, accuracy and the resolved statistics

        Raises:
            InvalidRequestError: For contradictory or missing inputs
            DegenerateInputError: If accuracy and counts do not fit the beatmap
            FetchError: If the beatmap cannot be downloaded
            CalculationTimeoutError: If the calculation exceeds its deadline

        ppcalc errors carry the request id as a ``[id]`` prefix of their message.
        """
        request_id = uuid.uuid4().hex[:8]
        with logger.contextualize(request_id=request_id):
            try:
                async with asyncio.timeout(self._timeout):
                    return await self._calculate(
                        beatmap_id, ruleset, accuracy, passed, max_combo, mods, statistics
                    )
            except TimeoutError as e:
                logger.warning(f"Calculation for beatmap {beatmap_id} timed out")
                error = CalculationTimeoutError(beatmap_id, self._timeout)
                raise error.with_context(request_id) from e
            except Exception as e:
                logger.info(f"Error calculating pp: {e}")
                if e.__cause__ is not None:
                    logger.info(f"Caused by: {e.__cause__}")
                if isinstance(e, PPCalcError):
                    raise e.with_context(request_id)
                raise

    async def _calculate(
        self,
        beatmap_id: int,
        ruleset: Ruleset | int,
        accuracy: float | None,
        passed: bool,
        max_combo: int | None,
        mods: ModSet | Iterable[Mod | str] | None,
        statistics: Mapping[HitResult, int] | None,
    ) -> CalculationResult:
        if beatmap_id <= 0:
            raise InvalidRequestError(f"Beatmap ID must be positive, got {beatmap_id}")

        estimator = get_estimator(ruleset)
        ruleset = estimator.ruleset
        mod_set = mods if isinstance(mods, ModSet) else ModSet.of(mods)

        if statistics is not None:
            statistics = dict(statistics)
            estimator.validate_statistics(statistics)

        # A failed play only went through part of the beatmap
        object_limit = None
        if not passed:
            if statistics is None:
                raise InvalidRequestError("Statistics are required for a failed play")
            object_limit = count_basic_hit_results(statistics)

        key = DifficultyKey(beatmap_id, ruleset, object_limit, mod_set)
        logger.info(f"Calculating {key}")

        content = await self._beatmap_cache.fetch(beatmap_id)
        logger.debug(f"Got {len(content)} bytes for beatmap {beatmap_id}")

        beatmap: Beatmap = await self._memoizer.get_or_compute(
            key,
            ArtifactKind.BEATMAP,
            lambda: parse_beatmap(self._backend, content, object_limit),
        )
        playable: Beatmap = await self._memoizer.get_or_compute(
            key,
            ArtifactKind.PLAYABLE_BEATMAP,
            lambda: self._backend.create_playable(beatmap, ruleset, mod_set),
        )
        logger.debug(f"Playable beatmap has {len(playable)} hit objects")

        resolved = self._resolve_statistics(estimator, playable, mod_set, accuracy, statistics)
        score_accuracy = estimator.compute_accuracy(playable, resolved, mod_set)
        beatmap_max_combo = playable.max_combo

        difficulty: DifficultyAttributes = await self._memoizer.get_or_compute(
            key,
            ArtifactKind.DIFFICULTY_ATTRIBUTES,
            lambda: self._backend.calculate_difficulty(ruleset, beatmap, mod_set),
        )
        logger.debug(f"Star rating {difficulty.star_rating:.2f}")

        score = ScoreInfo(
            ruleset=ruleset,
            accuracy=score_accuracy,
            max_combo=max_combo if max_combo is not None else beatmap_max_combo,
            mods=mod_set,
            statistics=resolved,
            passed=passed,
        )
        performance = await asyncio.to_thread(
            self._backend.calculate_performance, ruleset, score, difficulty
        )
        logger.info(f"Calculated total pp: {performance.total}")

        return CalculationResult(
            pp=performance.total,
            accuracy=score_accuracy,
            difficulty_attributes=difficulty,
            beatmap_max_combo=beatmap_max_combo,
            beatmap_hit_objects_count=len(playable),
            score_hit_results_count=count_basic_hit_results(resolved),
            statistics=resolved,
        )

    @staticmethod
    def _resolve_statistics(
        estimator: HitResultEstimator,
        beatmap: Beatmap,
        mods: ModSet,
        accuracy: float | None,
        statistics: Mapping[HitResult, int] | None,
    ) -> Statistics:
        """Build the complete hit result counts the score is calculated with.

        With statistics only, the breakdown is taken as is (absent categories
        count as zero). With accuracy, the base counts are resynthesized from
        it; only the misses and the API-only slider categories of a supplied
        breakdown are kept.
        """
        if accuracy is None and statistics is None:
            accuracy = 1.0

        overrides: dict[str, Any] = estimator.overrides_from(
            beatmap, statistics, fill_missing=accuracy is None
        )
        if accuracy is not None:
            overrides = {
                name: value
                for name, value in overrides.items()
                if name not in estimator.override_results
            }
        return estimator.estimate(
            beatmap,
            mods,
            accuracy=accuracy,
            misses=estimator.misses_from(statistics),
            **overrides,
        )


def create_calculator(
    backend: RulesetBackend,
    settings: Settings,
    beatmap_cache: BeatmapCache | None = None,
    memoizer: ArtifactMemoizer | None = None,
) -> PerformanceCalculator:
    """Build a calculator with cache and memoizer configured from settings.

    Args:
        backend: Ruleset collaborators
        settings: Application settings
        beatmap_cache: Shared beatmap cache. Created from settings if None
        memoizer: Shared memoizer. Created from settings if None

    Returns:
        Configured PerformanceCalculator
    """
    if beatmap_cache is None:
        beatmap_cache = BeatmapCache(
            base_dir=settings.get_beatmap_cache_dir(),
            download_url=settings.beatmap_download_url,
            ttl_days=settings.beatmap_cache_days,
            min_size=settings.beatmap_min_size,
            timeout=settings.fetch_timeout,
            max_attempts=settings.fetch_attempts,
            retry_delay=settings.fetch_retry_delay,
            memory_ttl_minutes=settings.memory_cache_ttl_minutes,
            memory_max_entries=settings.memory_cache_max_entries,
        )
    if memoizer is None:
        memoizer = ArtifactMemoizer(
            enabled=settings.memoize_artifacts,
            max_entries=settings.memoize_max_entries,
            single_flight=settings.memoize_single_flight,
        )
    return PerformanceCalculator(
        backend=backend,
        beatmap_cache=beatmap_cache,
        memoizer=memoizer,
        timeout=settings.calculation_timeout,
    )

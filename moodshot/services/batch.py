"""Batch generation with a single shortfall retry.

A batch of K images runs as one concurrent round of K calls. If some of
them fail, exactly one more concurrent round is run for the shortfall.
There is never a third round, so a request costs at most two generation
latencies.
"""
from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import Awaitable, Callable, Sequence

from moodshot.errors import GenerationCallFailed, TotalGenerationFailure
from moodshot.schemas import clamp_count
from moodshot.services.generation import random_seed

logger = logging.getLogger(__name__)

Attempt = Callable[[int], Awaitable[str | None]]


@dataclass(frozen=True)
class GenerationAttempt:
    seed: int
    url: str | None = None
    error: GenerationCallFailed | None = None

    @property
    def succeeded(self) -> bool:
        return self.url is not None


@dataclass(frozen=True)
class GenerationResult:
    urls: tuple[str, ...]
    requested: int
    rounds: int
    attempts: tuple[GenerationAttempt, ...]

    @property
    def count(self) -> int:
        return len(self.urls)


async def _run_round(attempt: Attempt, seeds: Sequence[int]) -> list[GenerationAttempt]:
    outcomes = await asyncio.gather(*(attempt(seed) for seed in seeds), return_exceptions=True)

    results: list[GenerationAttempt] = []
    for seed, outcome in zip(seeds, outcomes):
        if isinstance(outcome, BaseException) and not isinstance(outcome, Exception):
            raise outcome
        if isinstance(outcome, Exception):
            logger.warning("[batch] seed=%s raised: %s", seed, outcome)
            results.append(GenerationAttempt(seed=seed, error=GenerationCallFailed(str(outcome))))
        elif isinstance(outcome, str) and outcome:
            results.append(GenerationAttempt(seed=seed, url=outcome))
        else:
            results.append(
                GenerationAttempt(seed=seed, error=GenerationCallFailed("provider returned no image"))
            )
    return results


async def generate_batch(
    attempt: Attempt,
    count: int,
    *,
    seed_source: Callable[[], int] = random_seed,
) -> GenerationResult:
    """Run up to ``count`` generations and return the successful URLs.

    The result may hold fewer than ``count`` URLs; callers must use
    :attr:`GenerationResult.count`. Raises :class:`TotalGenerationFailure`
    when both rounds produce nothing.
    """

    requested = clamp_count(count)
    attempts = await _run_round(attempt, [seed_source() for _ in range(requested)])
    urls = [item.url for item in attempts if item.url]
    rounds = 1

    shortfall = requested - len(urls)
    if shortfall > 0:
        logger.info(
            "[batch] round 1: %s/%s succeeded, retrying %s", len(urls), requested, shortfall
        )
        retry = await _run_round(attempt, [seed_source() for _ in range(shortfall)])
        attempts.extend(retry)
        urls.extend(item.url for item in retry if item.url)
        rounds = 2

    urls = urls[:requested]
    logger.info("[batch] %s/%s images after %s round(s)", len(urls), requested, rounds)
    if not urls:
        raise TotalGenerationFailure(requested, len(attempts))

    return GenerationResult(
        urls=tuple(urls),
        requested=requested,
        rounds=rounds,
        attempts=tuple(attempts),
    )


__all__ = ["Attempt", "GenerationAttempt", "GenerationResult", "generate_batch"]

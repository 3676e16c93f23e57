from __future__ import annotations

import asyncio
import itertools

import pytest

from moodshot.errors import TotalGenerationFailure
from moodshot.services.batch import generate_batch


def _counter():
    counter = itertools.count(1)
    return lambda: next(counter)


class RecordingAttempt:
    """Attempt callable that fails for chosen seeds and records every call."""

    def __init__(self, fail_seeds=(), raise_seeds=(), always_fail=False):
        self.fail_seeds = set(fail_seeds)
        self.raise_seeds = set(raise_seeds)
        self.always_fail = always_fail
        self.seeds: list[int] = []
        self.in_flight = 0
        self.max_in_flight = 0

    async def __call__(self, seed: int):
        self.seeds.append(seed)
        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        await asyncio.sleep(0)
        self.in_flight -= 1
        if seed in self.raise_seeds:
            raise RuntimeError(f"provider exploded for {seed}")
        if self.always_fail or seed in self.fail_seeds:
            return None
        return f"https://img.example.com/{seed}.png"


@pytest.mark.parametrize("count", [1, 4, 8])
def test_all_succeed_returns_exactly_k_distinct_urls(count: int) -> None:
    attempt = RecordingAttempt()

    result = asyncio.run(generate_batch(attempt, count, seed_source=_counter()))

    assert result.count == count
    assert len(set(result.urls)) == count
    assert result.rounds == 1
    assert len(attempt.seeds) == count


def test_round_runs_calls_concurrently() -> None:
    attempt = RecordingAttempt()

    asyncio.run(generate_batch(attempt, 6, seed_source=_counter()))

    assert attempt.max_in_flight == 6


def test_single_failure_triggers_exactly_one_retry_call() -> None:
    attempt = RecordingAttempt(fail_seeds={1})

    result = asyncio.run(generate_batch(attempt, 4, seed_source=_counter()))

    assert attempt.seeds == [1, 2, 3, 4, 5]
    assert result.count == 4
    assert result.rounds == 2
    assert "https://img.example.com/5.png" in result.urls
    failed = [item for item in result.attempts if not item.succeeded]
    assert [item.seed for item in failed] == [1]


def test_retry_round_uses_fresh_seeds_and_may_stay_short() -> None:
    # round 1: seeds 1-4, 1 and 2 fail; round 2: seeds 5-6, 5 fails
    attempt = RecordingAttempt(fail_seeds={1, 2, 5})

    result = asyncio.run(generate_batch(attempt, 4, seed_source=_counter()))

    assert attempt.seeds == [1, 2, 3, 4, 5, 6]
    assert result.count == 3
    assert result.requested == 4
    assert result.rounds == 2


def test_total_failure_stops_after_two_rounds() -> None:
    attempt = RecordingAttempt(always_fail=True)

    with pytest.raises(TotalGenerationFailure) as excinfo:
        asyncio.run(generate_batch(attempt, 3, seed_source=_counter()))

    assert len(attempt.seeds) == 6
    assert excinfo.value.requested == 3
    assert excinfo.value.attempts == 6


def test_raised_exceptions_count_as_failures() -> None:
    attempt = RecordingAttempt(raise_seeds={2})

    result = asyncio.run(generate_batch(attempt, 2, seed_source=_counter()))

    assert result.count == 2
    assert attempt.seeds == [1, 2, 3]
    errors = [item.error for item in result.attempts if item.error is not None]
    assert len(errors) == 1
    assert "provider exploded" in str(errors[0])


@pytest.mark.parametrize("requested, expected", [(0, 1), (-3, 1), (99, 8)])
def test_count_is_clamped(requested: int, expected: int) -> None:
    attempt = RecordingAttempt()

    result = asyncio.run(generate_batch(attempt, requested, seed_source=_counter()))

    assert result.count == expected
    assert len(attempt.seeds) == expected


def test_default_seed_source_produces_31_bit_seeds() -> None:
    attempt = RecordingAttempt()

    asyncio.run(generate_batch(attempt, 8))

    assert all(0 <= seed < 2**31 for seed in attempt.seeds)

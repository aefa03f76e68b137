"""
Tests for async_utils module.

Covers run_sync, run_sync_limited, gather_limited, gather_settled and
init_semaphore.
"""

import asyncio
import threading

import pytest

import github_cms_mcp.core.async_utils as mod
from github_cms_mcp.core.async_utils import (
    gather_limited,
    gather_settled,
    init_semaphore,
    run_sync,
    run_sync_limited,
)


def _sync_add(a: int, b: int) -> int:
    return a + b


async def test_run_sync_calls_function():
    assert await run_sync(_sync_add, 3, 4) == 7


async def test_run_sync_passes_kwargs():
    def _kw_func(*, name: str) -> str:
        return f"hello {name}"

    assert await run_sync(_kw_func, name="world") == "hello world"


async def test_run_sync_runs_off_event_loop_thread():
    loop_thread = threading.get_ident()
    worker_thread = await run_sync(threading.get_ident)
    assert worker_thread != loop_thread


async def test_init_semaphore_sets_value():
    init_semaphore(5)
    assert isinstance(mod._semaphore, asyncio.Semaphore)
    assert mod._semaphore._value == 5


async def test_run_sync_limited_with_semaphore():
    init_semaphore(2)
    assert await run_sync_limited(_sync_add, 10, 20) == 30
    # Released after the call
    assert mod._semaphore._value == 2


async def test_run_sync_limited_without_semaphore():
    mod._semaphore = None
    assert await run_sync_limited(_sync_add, 1, 1) == 2


async def test_semaphore_caps_concurrency():
    init_semaphore(2)
    lock = threading.Lock()
    state = {"active": 0, "peak": 0}
    release = threading.Event()

    def _work():
        with lock:
            state["active"] += 1
            state["peak"] = max(state["peak"], state["active"])
        release.wait(timeout=0.05)
        with lock:
            state["active"] -= 1
        return True

    results = await gather_limited(
        [run_sync_limited(_work) for _ in range(6)]
    )
    assert results == [True] * 6
    assert state["peak"] <= 2


async def test_gather_limited_preserves_order():
    results = await gather_limited(
        [run_sync_limited(_sync_add, i, 0) for i in range(5)]
    )
    assert results == [0, 1, 2, 3, 4]


async def test_gather_limited_propagates_first_error():
    def _boom():
        raise RuntimeError("boom")

    with pytest.raises(RuntimeError, match="boom"):
        await gather_limited([run_sync_limited(_boom)])


async def test_gather_settled_returns_exceptions_in_place():
    def _boom():
        raise ValueError("bad")

    results = await gather_settled(
        [
            run_sync_limited(_sync_add, 1, 2),
            run_sync_limited(_boom),
            run_sync_limited(_sync_add, 2, 2),
        ]
    )
    assert results[0] == 3
    assert isinstance(results[1], ValueError)
    assert results[2] == 4


async def test_gather_empty():
    assert await gather_limited([]) == []
    assert await gather_settled([]) == []

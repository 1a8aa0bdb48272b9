from __future__ import annotations

import asyncio
import logging

import pytest

from app import _log_task_failure


async def _fail() -> None:
    raise RuntimeError("heartbeat broke")


async def _finish() -> None:
    return None


def _run_task(coro, name: str) -> None:
    async def _main() -> None:
        task = asyncio.get_running_loop().create_task(coro, name=name)
        task.add_done_callback(_log_task_failure)
        await asyncio.gather(task, return_exceptions=True)
        await asyncio.sleep(0)

    asyncio.run(_main())


def test_failed_background_task_is_logged(caplog: pytest.LogCaptureFixture) -> None:
    with caplog.at_level(logging.ERROR, logger="app"):
        _run_task(_fail(), "heartbeat")

    assert "Background task heartbeat failed" in caplog.text
    assert "heartbeat broke" in caplog.text


def test_finished_background_task_logs_nothing(caplog: pytest.LogCaptureFixture) -> None:
    with caplog.at_level(logging.ERROR, logger="app"):
        _run_task(_finish(), "heartbeat")

    assert caplog.records == []

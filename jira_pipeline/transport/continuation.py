"""Continuation delivery for UI/CLI collaborators

비동기 결과를 (value, error) 형태의 콜백으로 정확히 한 번 전달합니다.
콜백이 없으면 결과는 조용히 버려집니다.
"""

import asyncio
from typing import Any, Awaitable, Callable, Optional

from jira_pipeline.core.logging import logger

from .result import ApiResult

Continuation = Callable[[Optional[Any], Optional[str]], None]


def deliver(result: ApiResult, callback: Optional[Continuation]) -> None:
    """결과를 콜백으로 전달

    Args:
        result: Success 또는 Failure
        callback: (value, error) 콜백 (None 이면 무시)
    """
    if callback is None:
        return
    value, error = result.as_pair()
    callback(value, error)


def run_with_continuation(
    awaitable: Awaitable[ApiResult],
    callback: Optional[Continuation] = None,
) -> "asyncio.Task[None]":
    """코루틴을 태스크로 실행하고 완료 시 콜백 호출

    Usage:
        run_with_continuation(client.get_issue("PROJ-1"), on_issue)

    Returns:
        asyncio.Task: 취소 가능한 태스크 (취소되면 콜백은 호출되지 않음)
    """

    async def _drive() -> None:
        result = await awaitable
        deliver(result, callback)

    task = asyncio.ensure_future(_drive())
    task.add_done_callback(_log_unexpected_error)
    return task


def _log_unexpected_error(task: "asyncio.Task[None]") -> None:
    if task.cancelled():
        return
    exc = task.exception()
    if exc is not None:
        # 작업 자체 또는 콜백 어느 쪽에서든 발생할 수 있음
        logger.error(
            f"[Continuation] operation or callback raised: {type(exc).__name__}: {exc}",
            exc_info=exc,
        )

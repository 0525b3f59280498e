"""Executor Protocol - Interface for request executors

Defines the common interface that all transport executors must implement.
"""

from typing import Any, Optional, Protocol

from .request import HttpMethod
from .result import ApiResult


class RequestExecutor(Protocol):
    """요청 실행자 프로토콜

    CurlExecutor 및 테스트용 가짜 실행자가 구현해야 할 인터페이스입니다.

    구현 예시:
        class CurlExecutor(RequestExecutor):
            async def execute(self, method, endpoint, body=None) -> ApiResult:
                # 외부 프로세스 기반 요청
                ...
    """

    async def execute(
        self,
        method: HttpMethod,
        endpoint: str,
        body: Optional[Any] = None,
    ) -> ApiResult:
        """요청 실행

        Args:
            method: HTTP 메서드
            endpoint: API 경로 (base URL 제외)
            body: JSON 본문 (선택)

        Returns:
            ApiResult: Success 또는 Failure. 예외를 던지지 않습니다.
        """
        ...

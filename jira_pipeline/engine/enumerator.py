"""Prefix Enumerator - assignable user search beyond the 100-result ceiling

assignable user 검색 API는 prefix 필터당 최대 100건만 반환하고
이 쿼리에는 페이지네이션이 없습니다. 100건이 꽉 찬 prefix 는 더 긴
prefix 로 쪼개 다시 조회합니다 (너비 우선, 최대 깊이 3).

1. 프로젝트 단위 캐시 확인 (휘발 계층)
2. 1글자 prefix 36개로 큐 초기화
3. 큐 앞에서 하나씩 꺼내 조회 → 중복 제거 후 누적
4. 결과가 정확히 100건이고 깊이 < 3 이면 자식 prefix 36개 추가
5. 어느 prefix 든 실패하면 전체 중단 (부분 결과/캐시 없음)
6. 요청 사이에 고정 지연 (throttle)
"""

import asyncio
import string
from collections import deque
from typing import Any, Deque, Dict, List, Optional, Set
from urllib.parse import urlencode

from jira_pipeline.adapters.version import ApiVersionAdapter
from jira_pipeline.cache.keys import assignable_users_key
from jira_pipeline.cache.store import CacheStore
from jira_pipeline.core.config import settings
from jira_pipeline.core.logging import logger
from jira_pipeline.transport.continuation import Continuation, deliver
from jira_pipeline.transport.executor import RequestExecutor
from jira_pipeline.transport.request import HttpMethod
from jira_pipeline.transport.result import ApiResult, Failure, Success, collect_error_messages

from .report import EnumerationReport

ALPHABET = string.ascii_lowercase + string.digits
MAX_DEPTH = 3
PAGE_SIZE = 100


def item_identity(item: Dict[str, Any]) -> Optional[str]:
    """사용자 식별자 (accountId, 없으면 name)"""
    identity = item.get("accountId") or item.get("name")
    return str(identity) if identity else None


class _EnumerationState:
    """열거 1회 동안만 쓰이는 내부 상태"""

    def __init__(self) -> None:
        self.pending: Deque[str] = deque(ALPHABET)
        self.processed: Set[str] = set()
        self.items: List[Dict[str, Any]] = []
        self.seen: Set[str] = set()

    def absorb(self, page: List[Dict[str, Any]], report: EnumerationReport) -> int:
        new_items = 0
        for item in page:
            identity = item_identity(item) if isinstance(item, dict) else None
            if identity is None:
                report.unidentified_items += 1
                continue
            if identity in self.seen:
                continue
            self.seen.add(identity)
            self.items.append(item)
            new_items += 1
        return new_items

    def expand(self, prefix: str) -> None:
        self.pending.extend(prefix + char for char in ALPHABET)


class AssignableUserEnumerator:
    """담당 가능 사용자 전체 열거기

    한 번에 하나의 prefix 만 처리합니다. 중복 제거와 깊이 계산이 처리 순서에
    의존하므로 요청을 동시에 보내지 않습니다. 감싸는 태스크가 취소되면
    다음 prefix 를 꺼내지 않고 즉시 중단됩니다.

    Usage:
        enumerator = AssignableUserEnumerator(executor, cache, adapter)
        result = await enumerator.enumerate(project_key="PROJ")
    """

    def __init__(
        self,
        executor: RequestExecutor,
        cache: CacheStore,
        adapter: ApiVersionAdapter,
        throttle_s: Optional[float] = None,
    ):
        """
        Args:
            executor: 요청 실행자
            cache: 캐시 저장소
            adapter: API 버전 어댑터
            throttle_s: 요청 간 지연 (초, 없으면 settings.enumeration_throttle_ms)
        """
        self.executor = executor
        self.cache = cache
        self.adapter = adapter
        if throttle_s is None:
            throttle_s = settings.enumeration_throttle_ms / 1000.0
        self.throttle_s = max(0.0, throttle_s)
        self.last_report: Optional[EnumerationReport] = None

    def build_endpoint(
        self,
        prefix: str,
        project_key: Optional[str] = None,
        issue_key: Optional[str] = None,
    ) -> str:
        params: Dict[str, Any] = {"maxResults": PAGE_SIZE}
        if prefix:
            params["username"] = f"{prefix}*"
        if project_key:
            params["project"] = project_key
        if issue_key:
            params["issueKey"] = issue_key
        query_string = urlencode(params, safe="*")
        return f"{self.adapter.get_api_path()}/user/assignable/search?{query_string}"

    async def enumerate(
        self,
        project_key: Optional[str] = None,
        issue_key: Optional[str] = None,
    ) -> ApiResult:
        """전체 사용자 열거

        Args:
            project_key: 프로젝트 키 (있을 때만 캐시 사용)
            issue_key: 이슈 키 (추가 필터)

        Returns:
            ApiResult: Success(사용자 목록, 발견 순서) 또는 Failure(중단 원인)
        """
        report = EnumerationReport(scope=project_key)
        report.start()
        self.last_report = report

        if project_key:
            cached = self.cache.get(assignable_users_key(project_key))
            if cached is not None:
                report.from_cache = True
                report.items = len(cached)
                logger.info(f"[Enumerator] Cache hit: project='{project_key}', users={len(cached)}")
                # 호출자가 결과를 변경해도 캐시 항목은 그대로
                return Success(list(cached))

        state = _EnumerationState()
        while state.pending:
            prefix = state.pending.popleft()
            if prefix in state.processed:
                report.skipped_prefixes += 1
                continue
            state.processed.add(prefix)

            if report.requests > 0 and self.throttle_s > 0:
                await asyncio.sleep(self.throttle_s)

            endpoint = self.build_endpoint(prefix, project_key, issue_key)
            result = await self.executor.execute(HttpMethod.GET, endpoint)
            report.requests += 1

            if result.is_error:
                return self._abort(report, prefix, result)

            page = result.value or []
            if not isinstance(page, list):
                messages = collect_error_messages(page)
                reason = "\n".join(messages) if messages else f"Unexpected response type: {type(page).__name__}"
                return self._abort(report, prefix, Failure.protocol(reason, {"prefix": prefix}))

            new_items = state.absorb(page, report)

            if len(page) == PAGE_SIZE and len(prefix) < MAX_DEPTH:
                state.expand(prefix)
                report.expanded_prefixes += 1
                logger.debug(
                    f"[Enumerator] Prefix '{prefix}': {len(page)} users (expanding), "
                    f"{new_items} new, total: {len(state.items)}"
                )
            else:
                logger.debug(
                    f"[Enumerator] Prefix '{prefix}': {len(page)} users, "
                    f"{new_items} new, total: {len(state.items)}"
                )

        report.items = len(state.items)
        if project_key:
            self.cache.set(assignable_users_key(project_key), list(state.items))

        logger.info(f"[Enumerator] Final assignable user count: {len(state.items)} ({report.to_dict()})")
        return Success(state.items)

    async def enumerate_with_callback(
        self,
        project_key: Optional[str] = None,
        issue_key: Optional[str] = None,
        callback: Optional[Continuation] = None,
    ) -> None:
        """enumerate() 결과를 (value, error) 콜백으로 한 번 전달"""
        result = await self.enumerate(project_key, issue_key)
        deliver(result, callback)

    @staticmethod
    def _abort(report: EnumerationReport, prefix: str, cause: Failure) -> Failure:
        report.aborted_prefix = prefix
        logger.warning(
            f"[Enumerator] Aborted at prefix '{prefix}': {cause.error_code} {cause.message} "
            f"(requests={report.requests})"
        )
        return Failure.aborted(prefix, cause)

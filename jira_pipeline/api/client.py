"""Jira API Client - single-shot operations + enumeration entry point

UI/CLI 쪽 협력자가 호출하는 진입점입니다. 모든 메서드는 ApiResult 를
반환하며 예외를 던지지 않습니다. 콜백 형태가 필요하면
run_with_continuation() 으로 감싸 사용합니다.
"""

from typing import Any, Dict, List, Optional
from urllib.parse import quote

from jira_pipeline.adapters.version import ApiVersionAdapter, get_adapter
from jira_pipeline.cache.store import CacheStore
from jira_pipeline.core.config import Settings
from jira_pipeline.core.config import settings as default_settings
from jira_pipeline.core.exceptions import ConfigurationException
from jira_pipeline.core.logging import logger
from jira_pipeline.engine.enumerator import AssignableUserEnumerator
from jira_pipeline.transport.curl_executor import CurlExecutor
from jira_pipeline.transport.executor import RequestExecutor
from jira_pipeline.transport.request import HttpMethod
from jira_pipeline.transport.result import ApiResult, Failure, Success, collect_error_messages

AGILE_API_PATH = "/rest/agile/1.0"

DEFAULT_SEARCH_FIELDS = [
    "summary",
    "status",
    "parent",
    "priority",
    "assignee",
    "timespent",
    "timeoriginalestimate",
    "issuetype",
]


class JiraApiClient:
    """Jira REST API 클라이언트

    Usage:
        client = JiraApiClient.from_settings()
        result = await client.get_issue("PROJ-1")
        if result.is_success:
            issue = result.value
        await client.aclose()
    """

    def __init__(
        self,
        executor: RequestExecutor,
        cache: CacheStore,
        adapter: ApiVersionAdapter,
        settings: Optional[Settings] = None,
        enumerator: Optional[AssignableUserEnumerator] = None,
    ):
        """
        Args:
            executor: 요청 실행자
            cache: 캐시 저장소 (애플리케이션 루트 소유)
            adapter: API 버전 어댑터
            settings: 설정 (없으면 전역 settings)
            enumerator: 사용자 열거기 (없으면 내부 생성)
        """
        self.executor = executor
        self.cache = cache
        self.adapter = adapter
        self.settings = settings or default_settings
        self.enumerator = enumerator or AssignableUserEnumerator(
            executor,
            cache,
            adapter,
            throttle_s=self.settings.enumeration_throttle_ms / 1000.0,
        )

    @classmethod
    def from_settings(
        cls,
        settings: Optional[Settings] = None,
        cache: Optional[CacheStore] = None,
    ) -> "JiraApiClient":
        """설정으로부터 클라이언트 생성

        Raises:
            ConfigurationException: 인증 파라미터 누락
        """
        settings = settings or default_settings
        missing = settings.missing_auth_fields()
        if missing:
            error = ConfigurationException(missing, settings.auth_type)
            logger.error(str(error))
            raise error

        return cls(
            executor=CurlExecutor(settings),
            cache=cache or CacheStore(settings.persist_path),
            adapter=get_adapter(settings.api_version),
            settings=settings,
        )

    @property
    def api_path(self) -> str:
        return self.adapter.get_api_path()

    async def request(
        self,
        method: HttpMethod,
        endpoint: str,
        body: Optional[Any] = None,
    ) -> ApiResult:
        """단일 요청 (가공 없이 전달)"""
        return await self.executor.execute(method, endpoint, body)

    # ------------------------------------------------------------------
    # Issues
    # ------------------------------------------------------------------

    async def search_issues(
        self,
        jql: str,
        page_token: Optional[str] = None,
        max_results: Optional[int] = None,
        fields: Optional[List[str]] = None,
        project_key: Optional[str] = None,
    ) -> ApiResult:
        """JQL 검색

        Args:
            jql: JQL 쿼리
            page_token: 다음 페이지 토큰
            max_results: 페이지 크기 (없으면 settings.limit)
            fields: 조회 필드 (없으면 기본 필드 + 프로젝트 스토리 포인트 필드)
            project_key: 프로젝트 키 (스토리 포인트 필드 결정용, 없으면 default_project)

        Returns:
            ApiResult: 어댑터가 정규화한 검색 결과
        """
        if fields is None:
            project_key = project_key or self.settings.default_project
            story_point_field = self.settings.get_project_config(project_key).story_point_field
            fields = DEFAULT_SEARCH_FIELDS + [story_point_field]

        data = self.adapter.transform_search_data(
            jql, page_token, max_results or self.settings.limit, fields
        )
        result = await self.executor.execute(HttpMethod.POST, self.adapter.get_search_endpoint(), data)
        if result.is_error:
            return result

        # 잘못된 JQL 도 curl 종료 코드는 0 이고 오류 본문만 돌아옴
        payload = result.value
        errors = collect_error_messages(payload)
        if errors:
            logger.warning(f"[Client] search_issues rejected: {len(errors)} error(s)")
            return Failure.protocol("\n".join(errors), {"errors": errors})
        if not isinstance(payload, dict):
            return Failure.protocol(
                f"Unexpected search response type: {type(payload).__name__}",
                {"endpoint": self.adapter.get_search_endpoint()},
            )
        return Success(self.adapter.transform_search_response(payload))

    async def get_issue(self, issue_key: str) -> ApiResult:
        result = await self.executor.execute(HttpMethod.GET, f"{self.api_path}/issue/{issue_key}")
        if result.is_error:
            return result

        issue = result.value
        if isinstance(issue, dict) and not issue.get("key"):
            issue["key"] = issue_key
        return Success(issue)

    async def create_issue(self, fields: Dict[str, Any]) -> ApiResult:
        """이슈 생성

        원격 서비스가 errorMessages/errors 를 반환하면 하나의 메시지로 합쳐
        ProtocolException 으로 돌려줍니다. 응답에 key 가 없고 id 만 있으면
        이슈를 다시 조회합니다.
        """
        result = await self.executor.execute(
            HttpMethod.POST, f"{self.api_path}/issue", {"fields": fields}
        )
        if result.is_error:
            return result

        created = result.value
        errors = collect_error_messages(created)
        if errors:
            logger.warning(f"[Client] create_issue rejected: {len(errors)} error(s)")
            return Failure.protocol("\n".join(errors), {"errors": errors})

        if isinstance(created, dict) and not created.get("key") and created.get("id"):
            return await self.get_issue(str(created["id"]))
        return Success(created)

    async def update_issue(self, issue_key: str, fields: Dict[str, Any]) -> ApiResult:
        return await self.executor.execute(
            HttpMethod.PUT, f"{self.api_path}/issue/{issue_key}", {"fields": fields}
        )

    async def get_transitions(self, issue_key: str) -> ApiResult:
        result = await self.executor.execute(
            HttpMethod.GET, f"{self.api_path}/issue/{issue_key}/transitions"
        )
        if result.is_error:
            return result
        return Success(_field(result.value, "transitions") or [])

    async def transition_issue(self, issue_key: str, transition_id: str) -> ApiResult:
        result = await self.executor.execute(
            HttpMethod.POST,
            f"{self.api_path}/issue/{issue_key}/transitions",
            {"transition": {"id": transition_id}},
        )
        return _acknowledge(result)

    async def assign_issue(self, issue_key: str, account_id: Optional[str]) -> ApiResult:
        result = await self.executor.execute(
            HttpMethod.PUT,
            f"{self.api_path}/issue/{issue_key}/assignee",
            {"accountId": account_id},
        )
        return _acknowledge(result)

    async def add_worklog(
        self,
        issue_key: str,
        time_spent: str,
        comment: Optional[str] = None,
    ) -> ApiResult:
        data: Dict[str, Any] = {"timeSpent": time_spent}
        if comment:
            data["comment"] = self.adapter.transform_comment_data(comment)["body"]

        result = await self.executor.execute(
            HttpMethod.POST, f"{self.api_path}/issue/{issue_key}/worklog", data
        )
        return _acknowledge(result)

    async def get_create_meta(self, project_key: str) -> ApiResult:
        """프로젝트의 생성 가능한 이슈 타입 목록"""
        result = await self.executor.execute(
            HttpMethod.GET,
            f"{self.api_path}/issue/createmeta?projectKeys={quote(project_key)}",
        )
        if result.is_error:
            return result

        projects = _field(result.value, "projects") or []
        if isinstance(projects, list) and projects:
            return Success(_field(projects[0], "issuetypes") or [])
        return Success([])

    # ------------------------------------------------------------------
    # Comments
    # ------------------------------------------------------------------

    async def get_comments(self, issue_key: str) -> ApiResult:
        result = await self.executor.execute(
            HttpMethod.GET, f"{self.api_path}/issue/{issue_key}/comment"
        )
        if result.is_error:
            return result
        return Success(_field(result.value, "comments") or [])

    async def add_comment(self, issue_key: str, comment: str) -> ApiResult:
        result = await self.executor.execute(
            HttpMethod.POST,
            f"{self.api_path}/issue/{issue_key}/comment",
            self.adapter.transform_comment_data(comment),
        )
        return _acknowledge(result)

    async def edit_comment(self, issue_key: str, comment_id: str, comment: str) -> ApiResult:
        result = await self.executor.execute(
            HttpMethod.PUT,
            f"{self.api_path}/issue/{issue_key}/comment/{comment_id}",
            self.adapter.transform_comment_data(comment),
        )
        return _acknowledge(result)

    # ------------------------------------------------------------------
    # Users / metadata
    # ------------------------------------------------------------------

    async def get_myself(self) -> ApiResult:
        return await self.executor.execute(HttpMethod.GET, f"{self.api_path}/myself")

    async def get_current_user(self) -> ApiResult:
        """현재 사용자 (영속 계층에 인스턴스별로 저장)"""
        key = ["user", self.settings.base_url]
        cached = self.cache.get(key, persist=True)
        if cached is not None:
            return Success(cached)

        result = await self.get_myself()
        if result.is_success and isinstance(result.value, dict) and result.value.get("accountId"):
            self.cache.set(key, result.value, persist=True)
        return result

    async def get_assignable_users(
        self,
        project_key: Optional[str] = None,
        issue_key: Optional[str] = None,
    ) -> ApiResult:
        """담당 가능 사용자 전체 (prefix 확장 열거)"""
        return await self.enumerator.enumerate(project_key, issue_key)

    async def get_project_statuses(self, project: str) -> ApiResult:
        return await self.executor.execute(
            HttpMethod.GET, f"{self.api_path}/project/{project}/statuses"
        )

    async def get_issue_types(self) -> ApiResult:
        return await self._cached_get("issue_types", f"{self.api_path}/issuetype")

    async def get_priorities(self) -> ApiResult:
        return await self._cached_get("priorities", f"{self.api_path}/priority")

    # ------------------------------------------------------------------
    # Boards (agile API)
    # ------------------------------------------------------------------

    async def get_board_for_project(self, project_key: str) -> ApiResult:
        """프로젝트의 첫 번째 보드 (없으면 Success(None))"""
        result = await self.executor.execute(
            HttpMethod.GET, f"{AGILE_API_PATH}/board?projectKeyOrId={quote(project_key)}"
        )
        if result.is_error:
            return result
        boards = _field(result.value, "values") or []
        if not isinstance(boards, list):
            return Success(None)
        return Success(boards[0] if boards else None)

    async def get_board_config(self, board_id: int) -> ApiResult:
        return await self.executor.execute(
            HttpMethod.GET, f"{AGILE_API_PATH}/board/{board_id}/configuration"
        )

    async def aclose(self) -> None:
        """대기 중인 영속 캐시 쓰기 완료"""
        await self.cache.flush()

    async def _cached_get(self, cache_key: str, endpoint: str) -> ApiResult:
        cached = self.cache.get(cache_key)
        if cached is not None:
            return Success(cached)

        result = await self.executor.execute(HttpMethod.GET, endpoint)
        if result.is_success and result.value:
            self.cache.set(cache_key, result.value)
        return result


def _acknowledge(result: ApiResult) -> ApiResult:
    """본문이 필요 없는 변경 요청: 성공이면 Success(True)"""
    if result.is_error:
        return result
    return Success(True)


def _field(value: Any, name: str) -> Any:
    """dict 응답에서 필드 추출 (dict 가 아니면 None)"""
    if isinstance(value, dict):
        return value.get(name)
    return None

"""jira-pipeline: async Jira REST request pipeline.

- transport: curl 프로세스 기반 요청 실행 + ApiResult
- cache: 휘발/영속 2계층 캐시
- engine: assignable user prefix 확장 열거
- adapters: API 버전별 경로/페이로드 변환
- api: UI/CLI 협력자용 클라이언트
"""

from jira_pipeline.api.client import JiraApiClient
from jira_pipeline.cache.store import CacheStore
from jira_pipeline.engine.enumerator import AssignableUserEnumerator
from jira_pipeline.transport.continuation import run_with_continuation
from jira_pipeline.transport.curl_executor import CurlExecutor
from jira_pipeline.transport.result import ApiResult, Failure, Success

__version__ = "0.1.0"

__all__ = [
    "ApiResult",
    "AssignableUserEnumerator",
    "CacheStore",
    "CurlExecutor",
    "Failure",
    "JiraApiClient",
    "Success",
    "run_with_continuation",
]

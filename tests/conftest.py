"""전역 테스트 설정

역할:
- 테스트 환경 구성
- 공통 Fake 주입 (curl 프로세스, 요청 실행자)
- 설정/캐시 픽스처

금지:
- 실제 네트워크 호출
- 실제 사용자 데이터 경로(~/.local/share) 사용
"""

from __future__ import annotations

import asyncio
import os
import sys
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Callable, Optional
from urllib.parse import parse_qs, urlsplit

import pytest


# 프로젝트 루트를 경로에 추가
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from jira_pipeline.cache.store import CacheStore  # noqa: E402
from jira_pipeline.core.config import Settings  # noqa: E402
from jira_pipeline.transport.result import ApiResult, Failure, Success  # noqa: E402


@pytest.fixture(scope="session", autouse=True)
def test_env() -> None:
    """테스트 환경 변수 설정 (세션 전역)"""
    os.environ["ENVIRONMENT"] = "test"
    os.environ["JIRA_LOG_LEVEL"] = "INFO"


@pytest.fixture
def basic_settings(tmp_path: Path) -> Settings:
    """basic 인증 설정"""
    return Settings(
        _env_file=None,
        base_url="https://example.atlassian.net/",
        email="dev@example.com",
        token="api-token",
        auth_type="basic",
        data_dir=tmp_path / "data",
        enumeration_throttle_ms=0,
    )


@pytest.fixture
def pat_settings(tmp_path: Path) -> Settings:
    """PAT(Bearer) 인증 설정"""
    return Settings(
        _env_file=None,
        base_url="https://jira.internal.example.com",
        token="personal-access-token",
        auth_type="PAT",
        api_version="2",
        data_dir=tmp_path / "data",
        enumeration_throttle_ms=0,
    )


@pytest.fixture
def cache(tmp_path: Path) -> CacheStore:
    return CacheStore(tmp_path / "data" / "prefs.json")


# ============================================================================
# curl 프로세스 Fake
# ============================================================================

class FakeProcess:
    """asyncio.subprocess.Process 대역

    hang=True 이면 kill() 될 때까지 출력이 끝나지 않습니다.
    """

    def __init__(self, stdout: bytes = b"", stderr: bytes = b"", returncode: int = 0, hang: bool = False):
        self.stdout = asyncio.StreamReader()
        self.stderr = asyncio.StreamReader()
        if stdout:
            # 청크 단위 수집을 확인하기 위해 두 번에 나눠 넣음
            middle = len(stdout) // 2
            self.stdout.feed_data(stdout[:middle])
            self.stdout.feed_data(stdout[middle:])
        if stderr:
            self.stderr.feed_data(stderr)
        self._code = returncode
        self._exited = asyncio.Event()
        self.returncode: Optional[int] = None
        self.killed = False
        if not hang:
            self._finish()

    def _finish(self) -> None:
        self.stdout.feed_eof()
        self.stderr.feed_eof()
        self._exited.set()

    async def wait(self) -> int:
        await self._exited.wait()
        self.returncode = self._code
        return self._code

    def kill(self) -> None:
        self.killed = True
        self._code = -9
        self._finish()


@dataclass
class SpawnRecorder:
    """create_subprocess_exec 대역 - argv 와 스테이징된 본문을 기록"""

    process_factory: Callable[[], FakeProcess]
    calls: list[list[str]] = field(default_factory=list)
    body_paths: list[str] = field(default_factory=list)
    bodies: list[str] = field(default_factory=list)
    processes: list[FakeProcess] = field(default_factory=list)
    error: Optional[BaseException] = None

    async def __call__(self, *argv: str, **kwargs: Any) -> FakeProcess:
        self.calls.append(list(argv))
        if "--data-binary" in argv:
            path = argv[argv.index("--data-binary") + 1].lstrip("@")
            self.body_paths.append(path)
            self.bodies.append(Path(path).read_text(encoding="utf-8"))
        if self.error is not None:
            raise self.error
        process = self.process_factory()
        self.processes.append(process)
        return process


@pytest.fixture
def fake_curl(monkeypatch: pytest.MonkeyPatch) -> Callable[..., SpawnRecorder]:
    """curl 프로세스를 Fake 로 대체

    Usage:
        recorder = fake_curl(stdout=b'{"key": "PROJ-1"}')
    """

    def _install(
        stdout: bytes = b"",
        stderr: bytes = b"",
        returncode: int = 0,
        hang: bool = False,
        error: Optional[BaseException] = None,
    ) -> SpawnRecorder:
        recorder = SpawnRecorder(
            process_factory=lambda: FakeProcess(stdout, stderr, returncode, hang),
            error=error,
        )
        monkeypatch.setattr(
            "jira_pipeline.transport.curl_executor.asyncio.create_subprocess_exec",
            recorder,
        )
        return recorder

    return _install


# ============================================================================
# 요청 실행자 Fake (열거 테스트용)
# ============================================================================

def make_users(prefix: str, count: int, start: int = 0) -> list[dict[str, Any]]:
    """prefix 로 시작하는 가짜 사용자 목록"""
    return [
        {"accountId": f"{prefix}-{i}", "displayName": f"{prefix} user {i}"}
        for i in range(start, start + count)
    ]


def prefix_of(endpoint: str) -> str:
    """assignable search endpoint 에서 username prefix 추출"""
    query = parse_qs(urlsplit(endpoint).query)
    return query.get("username", [""])[0].rstrip("*")


@dataclass
class ScriptedExecutor:
    """prefix 별로 정해진 페이지를 돌려주는 실행자

    pages 에 없는 prefix 는 빈 목록을 반환합니다.
    """

    pages: dict[str, Any] = field(default_factory=dict)
    failures: dict[str, ApiResult] = field(default_factory=dict)
    calls: list[str] = field(default_factory=list)
    call_times: list[float] = field(default_factory=list)

    @property
    def prefixes(self) -> list[str]:
        return [prefix_of(endpoint) for endpoint in self.calls]

    async def execute(self, method: Any, endpoint: str, body: Any = None) -> ApiResult:
        self.calls.append(endpoint)
        self.call_times.append(asyncio.get_running_loop().time())
        prefix = prefix_of(endpoint)
        if prefix in self.failures:
            return self.failures[prefix]
        return Success(self.pages.get(prefix, []))


@pytest.fixture
def scripted_executor() -> ScriptedExecutor:
    return ScriptedExecutor()


@pytest.fixture
def transport_failure() -> Failure:
    return Failure.transport("curl: (6) Could not resolve host: example.atlassian.net", 6)


@pytest.fixture
def users() -> Callable[..., list[dict[str, Any]]]:
    """make_users 팩토리"""
    return make_users

"""Curl Executor - one external process per request

요청 하나마다 curl 프로세스를 하나 실행합니다.

- 인증 헤더 구성 (PAT → Bearer, 그 외 → Basic)
- 본문은 인자로 넘기지 않고 임시 파일로 전달 (인자 길이/이스케이프 문제 방지)
- stdout/stderr 를 청크 단위로 수집 후 결합
- 종료 코드/빈 응답/JSON 디코딩 결과를 ApiResult 로 정규화
"""

from __future__ import annotations

import asyncio
import json
import os
import tempfile
from contextlib import contextmanager
from typing import Any, Iterator, List, Optional, Tuple

from jira_pipeline.core.config import Settings
from jira_pipeline.core.config import settings as default_settings
from jira_pipeline.core.logging import logger, sanitize_for_log

from .continuation import Continuation, deliver
from .executor import RequestExecutor
from .request import ApiRequest, AuthCredentials, HttpMethod
from .result import ApiResult, Failure, Success

READ_CHUNK_SIZE = 64 * 1024


class BodyStagingError(Exception):
    """요청 본문을 임시 파일로 준비하지 못함"""


@contextmanager
def staged_body(body: Optional[Any]) -> Iterator[Optional[str]]:
    """요청 본문을 JSON 임시 파일로 준비

    블록이 끝나면 성공/실패/취소와 관계없이 파일을 삭제합니다.

    Args:
        body: JSON 직렬화 가능한 본문 (None 이면 파일 없음)

    Yields:
        임시 파일 경로 또는 None

    Raises:
        BodyStagingError: 직렬화 또는 파일 쓰기 실패
    """
    if body is None:
        yield None
        return

    try:
        payload = json.dumps(body, ensure_ascii=False)
    except (TypeError, ValueError) as e:
        raise BodyStagingError(f"body is not JSON serializable: {e}") from e

    try:
        fd, path = tempfile.mkstemp(prefix="jira-pipeline-", suffix=".json")
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            f.write(payload)
    except OSError as e:
        raise BodyStagingError(str(e)) from e

    try:
        yield path
    finally:
        try:
            os.remove(path)
        except FileNotFoundError:
            pass


async def _drain(stream: Optional[asyncio.StreamReader]) -> List[bytes]:
    chunks: List[bytes] = []
    if stream is None:
        return chunks
    while True:
        chunk = await stream.read(READ_CHUNK_SIZE)
        if not chunk:
            break
        chunks.append(chunk)
    return chunks


class CurlExecutor(RequestExecutor):
    """curl 기반 요청 실행자

    특징:
    - 예외를 던지지 않고 항상 ApiResult 반환 (취소 제외)
    - 타임아웃은 선택 사항: None 이면 프로세스가 끝날 때까지 대기
    - 타임아웃 만료 시 프로세스를 종료하고 재시도하지 않음

    Usage:
        executor = CurlExecutor()
        result = await executor.execute(HttpMethod.GET, "/rest/api/3/myself")
        if result.is_success:
            ...
    """

    def __init__(
        self,
        settings: Optional[Settings] = None,
        credentials: Optional[AuthCredentials] = None,
        timeout_s: Optional[float] = None,
    ):
        """
        Args:
            settings: 설정 (없으면 전역 settings)
            credentials: 인증 정보 (없으면 settings 에서 생성)
            timeout_s: 요청 타임아웃 (없으면 settings.request_timeout_s)
        """
        self.settings = settings or default_settings
        self.credentials = credentials or AuthCredentials.from_settings(self.settings)
        self.timeout_s = timeout_s if timeout_s is not None else self.settings.request_timeout_s

    def build_command(self, request: ApiRequest, body_file: Optional[str] = None) -> List[str]:
        """curl 인자 목록 생성

        Args:
            request: 요청
            body_file: 본문 임시 파일 경로

        Returns:
            subprocess 에 그대로 넘길 argv
        """
        argv: List[str] = [
            self.settings.curl_binary,
            "-sS",
            "-X", request.method.value,
            "-H", "Content-Type: application/json",
            "-H", "Accept: application/json",
        ]
        for name, value in request.auth.headers().items():
            argv.extend(["-H", f"{name}: {value}"])
        if body_file is not None:
            argv.extend(["--data-binary", f"@{body_file}"])
        argv.append(request.url(self.settings.base_url))
        return argv

    async def execute(
        self,
        method: HttpMethod,
        endpoint: str,
        body: Optional[Any] = None,
    ) -> ApiResult:
        """요청 실행

        Args:
            method: HTTP 메서드 (문자열도 허용)
            endpoint: API 경로
            body: JSON 본문 (선택)

        Returns:
            ApiResult: Success(value) 또는 Failure(error)
        """
        request = ApiRequest(
            method=HttpMethod(method),
            endpoint=endpoint,
            auth=self.credentials,
            body=body,
        )
        logger.debug(f"[Transport] {request.method.value} {sanitize_for_log(endpoint)}")

        try:
            with staged_body(request.body) as body_file:
                return await self._run(request, body_file)
        except BodyStagingError as e:
            logger.warning(f"[Transport] Body staging failed: {sanitize_for_log(endpoint)}, error={e}")
            return Failure.staging(str(e))

    async def execute_with_callback(
        self,
        method: HttpMethod,
        endpoint: str,
        body: Optional[Any] = None,
        callback: Optional[Continuation] = None,
    ) -> None:
        """execute() 결과를 (value, error) 콜백으로 한 번 전달"""
        result = await self.execute(method, endpoint, body)
        deliver(result, callback)

    async def _run(self, request: ApiRequest, body_file: Optional[str]) -> ApiResult:
        argv = self.build_command(request, body_file)
        try:
            process = await asyncio.create_subprocess_exec(
                *argv,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
            )
        except OSError as e:
            logger.error(f"[Transport] Failed to spawn {argv[0]}: {type(e).__name__}: {e}")
            return Failure.spawn(argv[0], str(e))

        try:
            if self.timeout_s is None:
                stdout_chunks, stderr_chunks, code = await self._communicate(process)
            else:
                stdout_chunks, stderr_chunks, code = await asyncio.wait_for(
                    self._communicate(process), timeout=self.timeout_s
                )
        except asyncio.TimeoutError:
            await self._terminate(process)
            logger.warning(
                f"[Transport] Timeout: {request.method.value} {sanitize_for_log(request.endpoint)}, timeout={self.timeout_s}s"
            )
            return Failure.timeout(request.endpoint, self.timeout_s)
        except asyncio.CancelledError:
            await asyncio.shield(self._terminate(process))
            raise

        return self.interpret(code, stdout_chunks, stderr_chunks)

    @staticmethod
    async def _communicate(process: asyncio.subprocess.Process) -> Tuple[List[bytes], List[bytes], int]:
        stdout_chunks, stderr_chunks = await asyncio.gather(
            _drain(process.stdout), _drain(process.stderr)
        )
        code = await process.wait()
        return stdout_chunks, stderr_chunks, code

    @staticmethod
    async def _terminate(process: asyncio.subprocess.Process) -> None:
        if process.returncode is not None:
            return
        try:
            process.kill()
        except ProcessLookupError:
            return
        await process.wait()

    @staticmethod
    def interpret(code: int, stdout_chunks: List[bytes], stderr_chunks: List[bytes]) -> ApiResult:
        """프로세스 출력 해석

        Args:
            code: 종료 코드
            stdout_chunks: 표준 출력 청크
            stderr_chunks: 표준 에러 청크

        Returns:
            ApiResult:
                - 종료 코드 != 0 → 전송 실패 (stderr 포함)
                - 빈 출력 → Success({}) (No Content)
                - JSON 디코딩 실패 → 디코딩 실패 (원문 포함)
                - 그 외 → Success(decoded)
        """
        if code != 0:
            stderr = b"".join(stderr_chunks).decode("utf-8", errors="replace")
            stderr = "\n".join(line for line in stderr.splitlines() if line)
            logger.warning(f"[Transport] curl exited with {code}: {sanitize_for_log(stderr)}")
            return Failure.transport(stderr, code)

        response = b"".join(stdout_chunks).decode("utf-8", errors="replace")
        if not response.strip():
            return Success({})

        try:
            return Success(json.loads(response))
        except json.JSONDecodeError as e:
            logger.warning(f"[Transport] JSON decode failed: {e}, response={sanitize_for_log(response)}")
            return Failure.decode(str(e), response)

"""API Result - Tagged success/failure value

모든 요청 경로(단일 요청/열거)에서 사용하는 결과 형식입니다.
Success 는 값만, Failure 는 오류만 가지며 둘 다 채워지는 경우는 없습니다.
값이 빈 dict 여도 Success 이면 유효한 응답입니다 (204 No Content 등).
"""

from dataclasses import dataclass
from typing import Any, List, Optional, Tuple, Union

from jira_pipeline.core.exceptions import (
    DecodeException,
    EnumerationAbortedException,
    JiraPipelineException,
    ProtocolException,
    RequestTimeoutException,
    TransportException,
)


@dataclass(frozen=True)
class Success:
    """성공 결과

    Attributes:
        value: 디코딩된 응답 (빈 응답이면 {})
    """

    value: Any

    @property
    def is_success(self) -> bool:
        return True

    @property
    def is_error(self) -> bool:
        return False

    def as_pair(self) -> Tuple[Any, None]:
        """continuation 전달용 (value, None)"""
        return self.value, None


@dataclass(frozen=True)
class Failure:
    """실패 결과

    Attributes:
        error: 오류 상세 (error_code/details 포함)
    """

    error: JiraPipelineException

    @property
    def is_success(self) -> bool:
        return False

    @property
    def is_error(self) -> bool:
        return True

    @property
    def message(self) -> str:
        return self.error.message

    @property
    def error_code(self) -> str:
        return self.error.error_code

    def as_pair(self) -> Tuple[None, str]:
        """continuation 전달용 (None, error message)"""
        return None, self.error.message

    @classmethod
    def transport(cls, stderr: str, exit_code: int) -> "Failure":
        """curl 비정상 종료

        Args:
            stderr: 캡처된 표준 에러
            exit_code: 종료 코드

        Returns:
            Failure: 전송 실패 결과
        """
        return cls(TransportException(
            f"Curl failed: {stderr}",
            details={"exit_code": exit_code, "stderr": stderr},
        ))

    @classmethod
    def spawn(cls, binary: str, reason: str) -> "Failure":
        """외부 프로세스 실행 자체가 실패한 경우"""
        return cls(TransportException(
            f"Failed to start {binary}: {reason}",
            error_code="TRANSPORT_SPAWN_FAILED",
            details={"binary": binary, "reason": reason},
        ))

    @classmethod
    def staging(cls, reason: str) -> "Failure":
        """요청 본문 임시 파일 생성 실패"""
        return cls(TransportException(
            f"Failed to create temp file: {reason}",
            error_code="TRANSPORT_STAGING_FAILED",
            details={"reason": reason},
        ))

    @classmethod
    def timeout(cls, endpoint: str, timeout_s: float) -> "Failure":
        return cls(RequestTimeoutException(endpoint, timeout_s))

    @classmethod
    def decode(cls, reason: str, raw: str) -> "Failure":
        """JSON 디코딩 실패 (원문 응답 포함)"""
        return cls(DecodeException(reason, raw))

    @classmethod
    def protocol(cls, message: str, details: Optional[dict] = None) -> "Failure":
        return cls(ProtocolException(message, details))

    @classmethod
    def aborted(cls, prefix: str, cause: "Failure") -> "Failure":
        """열거 중단 - 실패한 prefix 의 원인 오류를 감쌈"""
        return cls(EnumerationAbortedException(prefix, cause.error))


ApiResult = Union[Success, Failure]


def collect_error_messages(payload: Any) -> List[str]:
    """Jira 오류 본문(errorMessages/errors)을 사람이 읽을 수 있는 목록으로 변환

    Args:
        payload: 디코딩된 응답

    Returns:
        오류 메시지 목록 (오류 본문이 아니면 빈 목록)
    """
    if not isinstance(payload, dict):
        return []

    messages: List[str] = []
    for msg in payload.get("errorMessages") or []:
        messages.append(str(msg))
    errors = payload.get("errors") or {}
    if isinstance(errors, dict):
        for field, msg in errors.items():
            messages.append(f"{field}: {msg}")
    return messages

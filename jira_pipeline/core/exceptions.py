"""커스텀 예외 정의 (Structured Exception Hierarchy)

예외는 비동기 경계를 넘지 않습니다. 실행기/열거 엔진은 예외를 잡아
ApiResult(Failure) 값으로 감싸 호출자에게 전달합니다.
"""
from typing import Any, Optional


class JiraPipelineException(Exception):
    """기본 예외 클래스 - 모든 커스텀 예외의 부모"""
    def __init__(self, message: str, error_code: str = "UNKNOWN_ERROR", details: Optional[dict[str, Any]] = None):
        self.message = message
        self.error_code = error_code
        self.details = details or {}
        super().__init__(self.message)

    def __str__(self) -> str:
        return f"[{self.error_code}] {self.message}"


# 전송(외부 프로세스) 관련 예외
class TransportException(JiraPipelineException):
    """curl 비정상 종료 / 실행 실패"""
    def __init__(self, message: str, error_code: str = "TRANSPORT_ERROR", details: Optional[dict[str, Any]] = None):
        super().__init__(message, error_code or "TRANSPORT_ERROR", details)


class RequestTimeoutException(TransportException):
    """요청 타임아웃 (설정된 경우에만 발생)"""
    def __init__(self, endpoint: str, timeout_s: float, details: Optional[dict[str, Any]] = None):
        message = f"Request to '{endpoint}' timed out after {timeout_s}s"
        super().__init__(message, "REQUEST_TIMEOUT",
                         details or {"endpoint": endpoint, "timeout_s": timeout_s})


# 응답 해석 관련 예외
class DecodeException(JiraPipelineException):
    """JSON 디코딩 실패 - 원문 응답을 details 에 포함"""
    def __init__(self, reason: str, raw: str, details: Optional[dict[str, Any]] = None):
        message = f"Failed to parse JSON: {reason} | Resp: {raw}"
        super().__init__(message, "DECODE_ERROR",
                         details or {"reason": reason, "raw": raw})


class ProtocolException(JiraPipelineException):
    """원격 서비스가 구조화된 오류 본문을 반환한 경우"""
    def __init__(self, message: str, details: Optional[dict[str, Any]] = None):
        super().__init__(message, "PROTOCOL_ERROR", details)


# 열거 관련 예외
class EnumerationAbortedException(JiraPipelineException):
    """단일 prefix 실패로 전체 열거 중단"""
    def __init__(self, prefix: str, cause: JiraPipelineException, details: Optional[dict[str, Any]] = None):
        self.prefix = prefix
        self.cause = cause
        super().__init__(cause.message, "ENUMERATION_ABORTED",
                         details or {"prefix": prefix, "cause_code": cause.error_code})


# 설정 관련 예외
class ConfigurationException(JiraPipelineException):
    """인증 파라미터 누락"""
    def __init__(self, missing: list[str], auth_type: str, details: Optional[dict[str, Any]] = None):
        label = "PAT" if auth_type == "pat" else "basic auth"
        message = (
            f"Missing Jira configuration for {label}: {', '.join(missing)}. "
            "Set via config or environment variables."
        )
        super().__init__(message, "CONFIG_ERROR",
                         details or {"missing": missing, "auth_type": auth_type})


# 캐시 관련 예외
class CacheException(JiraPipelineException):
    """캐시 관련 예외"""
    def __init__(self, message: str, error_code: str = "CACHE_ERROR", details: Optional[dict[str, Any]] = None):
        super().__init__(message, error_code or "CACHE_ERROR", details)


class CachePersistenceException(CacheException):
    """영속 캐시 문서 쓰기 실패 (로그만 남기고 호출자에게 전달하지 않음)"""
    def __init__(self, path: str, reason: str, details: Optional[dict[str, Any]] = None):
        message = f"Failed to persist cache to {path}: {reason}"
        super().__init__(message, "CACHE_PERSIST_FAILED",
                         details or {"path": path, "reason": reason})

"""로깅 설정 (인증 정보 보호)

curl 인자에는 Authorization 헤더가, stderr/응답 원문에는 토큰이 섞일 수
있으므로 외부에서 온 문자열은 sanitize_for_log() 를 거쳐 기록합니다.
"""
import logging
import os
import re
import sys
from typing import Optional

from jira_pipeline.core.config import settings


LOGGER_NAME = "jira_pipeline"

# Production 환경에서는 DEBUG 로그 비활성화
IS_PRODUCTION = os.getenv("ENVIRONMENT", "development") == "production"

_FORMATS = {
    "production": "%(asctime)s - %(levelname)s - %(message)s",
    "development": "%(asctime)s - %(name)s - %(levelname)s - %(funcName)s:%(lineno)d - %(message)s",
}

# "Authorization: Basic xxx", "Bearer xxx"
_AUTH_HEADER = re.compile(r"(?i)\b(basic|bearer)\s+[A-Za-z0-9._~+/=-]+")
# token=xxx, "password": "xxx", apiToken: xxx
_SECRET_PAIR = re.compile(
    r"(?i)(\"?[\w-]*(?:token|password|secret)\"?\s*[:=]\s*\"?)[^\"&\s,}]+"
)


def setup_logging(level: Optional[str] = None) -> logging.Logger:
    """패키지 로거 초기화

    Args:
        level: 로그 레벨 (없으면 settings.log_level)

    Returns:
        "jira_pipeline" 로거 (핸들러는 한 번만 추가)
    """
    logger = logging.getLogger(LOGGER_NAME)

    level_name = (level or settings.log_level).upper()
    if IS_PRODUCTION and level_name == "DEBUG":
        level_name = "INFO"
    numeric_level = getattr(logging, level_name, logging.INFO)
    logger.setLevel(numeric_level)

    if not logger.handlers:
        handler = logging.StreamHandler(sys.stdout)
        handler.setLevel(numeric_level)
        handler.setFormatter(logging.Formatter(
            fmt=_FORMATS["production" if IS_PRODUCTION else "development"],
            datefmt="%Y-%m-%d %H:%M:%S",
        ))
        logger.addHandler(handler)

    return logger


logger = setup_logging()


def sanitize_for_log(value: Optional[str], max_length: int = 200) -> str:
    """로그용 문자열 정리

    인증 헤더 값과 token/password/secret 형태의 값을 가리고, 길면 자릅니다.

    Args:
        value: 기록할 문자열 (curl stderr, 응답 원문, endpoint 등)
        max_length: 최대 길이

    Returns:
        마스킹/절단된 문자열
    """
    if not value:
        return "[empty]"

    result = _AUTH_HEADER.sub(lambda m: f"{m.group(1)} ***", value)
    result = _SECRET_PAIR.sub(lambda m: f"{m.group(1)}***", result)

    if len(result) > max_length:
        result = result[:max_length] + "..."
    return result

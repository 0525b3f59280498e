"""캐시 키 유틸리티"""
from typing import Sequence, Union

KEY_SEPARATOR = "."

CacheKey = Union[str, Sequence[str]]


def make_key(key: CacheKey) -> str:
    """
    복합 키를 단일 문자열 키로 변환

    ["a", "b"] 와 "a.b" 는 같은 항목을 가리킵니다 (순서 유지).

    Args:
        key: 문자열 또는 문자열 세그먼트 시퀀스

    Returns:
        평탄화된 캐시 키
    """
    if isinstance(key, str):
        return key
    return KEY_SEPARATOR.join(str(segment) for segment in key)


def assignable_users_key(project_key: str) -> str:
    """프로젝트 단위 담당 가능 사용자 목록 키"""
    return make_key(["assignable_users", project_key])

"""Enumeration Report - request volume and timing bookkeeping

열거 1회 실행 동안의 요청 수, 확장된 prefix 수, 경과 시간을 기록합니다.
"""

from dataclasses import dataclass, field
from time import monotonic
from typing import Optional


@dataclass
class EnumerationReport:
    """열거 실행 리포트

    Usage:
        report = EnumerationReport(scope="PROJ")
        report.start()
        report.requests += 1
        logger.info(report.to_dict())
    """

    scope: Optional[str] = None
    requests: int = 0
    expanded_prefixes: int = 0
    skipped_prefixes: int = 0
    unidentified_items: int = 0
    items: int = 0
    from_cache: bool = False
    aborted_prefix: Optional[str] = None
    start_time: Optional[float] = field(default=None, repr=False)

    def start(self) -> None:
        self.start_time = monotonic()

    def elapsed(self) -> float:
        """경과 시간 (초). start() 전에는 0.0"""
        if self.start_time is None:
            return 0.0
        return monotonic() - self.start_time

    def to_dict(self) -> dict:
        """리포트 생성

        Returns:
            dict: 요청 수, 확장 수, 결과 수, 경과 시간(ms) 등
        """
        return {
            "scope": self.scope,
            "requests": self.requests,
            "expanded_prefixes": self.expanded_prefixes,
            "skipped_prefixes": self.skipped_prefixes,
            "unidentified_items": self.unidentified_items,
            "items": self.items,
            "from_cache": self.from_cache,
            "aborted_prefix": self.aborted_prefix,
            "elapsed_ms": round(self.elapsed() * 1000, 1),
        }

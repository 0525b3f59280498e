"""Request value - method, endpoint, body, auth material

요청마다 생성되는 일시적 값이며 영속화하지 않습니다.
"""

import base64
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Optional

from jira_pipeline.core.config import Settings


class HttpMethod(str, Enum):
    """지원하는 HTTP 메서드"""

    GET = "GET"
    POST = "POST"
    PUT = "PUT"
    DELETE = "DELETE"


@dataclass(frozen=True)
class AuthCredentials:
    """인증 정보

    PAT 모드에서는 bearer 토큰 하나, basic 모드에서는 (email, token) 쌍을
    하나의 Basic 자격 증명으로 인코딩합니다.
    """

    token: str
    email: Optional[str] = None
    bearer: bool = False

    @classmethod
    def from_settings(cls, settings: Settings) -> "AuthCredentials":
        if settings.is_pat:
            return cls(token=settings.token, bearer=True)
        return cls(token=settings.token, email=settings.email, bearer=False)

    def headers(self) -> Dict[str, str]:
        """Authorization 헤더 생성"""
        if self.bearer:
            return {"Authorization": f"Bearer {self.token}"}
        pair = f"{self.email or ''}:{self.token}".encode("utf-8")
        return {"Authorization": f"Basic {base64.b64encode(pair).decode('ascii')}"}

    def __repr__(self) -> str:
        mode = "bearer" if self.bearer else "basic"
        return f"AuthCredentials(mode={mode}, email={self.email!r})"


@dataclass(frozen=True)
class ApiRequest:
    """단일 API 요청

    Attributes:
        method: HTTP 메서드
        endpoint: base URL 이후의 경로 (쿼리 문자열 포함 가능)
        auth: 인증 정보
        body: JSON 직렬화 가능한 본문 (선택)
    """

    method: HttpMethod
    endpoint: str
    auth: AuthCredentials
    body: Optional[Any] = None

    def url(self, base_url: str) -> str:
        return f"{base_url.rstrip('/')}{self.endpoint}"

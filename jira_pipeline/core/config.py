"""설정 관리 - 환경 변수 로드 및 검증"""
from pathlib import Path
from typing import Dict, List, Optional

from pydantic import BaseModel, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


DEFAULT_STORY_POINT_FIELD = "customfield_10035"


class ProjectConfig(BaseModel):
    """프로젝트별 오버라이드 설정"""

    story_point_field: str = DEFAULT_STORY_POINT_FIELD
    custom_fields: List[Dict[str, str]] = Field(default_factory=list)


class Settings(BaseSettings):
    """애플리케이션 설정"""

    model_config = SettingsConfigDict(
        env_prefix="JIRA_",
        env_file=".env",
        case_sensitive=False,
        extra="ignore",
    )

    # 인증
    base_url: str = ""
    email: str = ""
    token: str = ""
    auth_type: str = "basic"  # "pat" 이면 Bearer, 그 외는 basic

    # API
    api_version: str = "3"
    limit: int = 200
    default_project: Optional[str] = None
    projects: Dict[str, ProjectConfig] = Field(default_factory=dict)

    # 캐시 (영속 계층)
    data_dir: Path = Path.home() / ".local" / "share" / "jira-pipeline"
    persist_file_name: str = "prefs.json"

    # 외부 프로세스
    curl_binary: str = "curl"
    # None 이면 무기한 대기 (curl 이 응답할 때까지)
    request_timeout_s: Optional[float] = None

    # 사용자 열거 요청 간 최소 간격
    enumeration_throttle_ms: int = 50

    # 로깅
    log_level: str = "INFO"

    @field_validator("base_url")
    @classmethod
    def strip_trailing_slash(cls, v: str) -> str:
        return v.rstrip("/")

    @field_validator("auth_type")
    @classmethod
    def normalize_auth_type(cls, v: str) -> str:
        return (v or "basic").strip().lower()

    @field_validator("api_version")
    @classmethod
    def validate_api_version(cls, v: str) -> str:
        v = str(v).strip()
        if v not in ("2", "3"):
            raise ValueError("api_version must be '2' or '3'")
        return v

    @field_validator("limit")
    @classmethod
    def validate_limit(cls, v: int) -> int:
        if v <= 0:
            raise ValueError("limit must be positive")
        return v

    @field_validator("enumeration_throttle_ms")
    @classmethod
    def validate_throttle(cls, v: int) -> int:
        if v < 0:
            raise ValueError("enumeration_throttle_ms must be >= 0")
        return v

    @field_validator("request_timeout_s")
    @classmethod
    def validate_request_timeout(cls, v: Optional[float]) -> Optional[float]:
        if v is not None and v <= 0:
            raise ValueError("request_timeout_s must be positive")
        return v

    @property
    def is_pat(self) -> bool:
        """PAT(Bearer) 인증 여부"""
        return self.auth_type == "pat"

    @property
    def persist_path(self) -> Path:
        """영속 캐시 문서 경로"""
        return Path(self.data_dir).expanduser() / self.persist_file_name

    def missing_auth_fields(self) -> List[str]:
        """누락된 인증 파라미터 목록

        Returns:
            누락 항목 이름 리스트 (비어 있으면 요청 가능)
        """
        missing: List[str] = []
        if not self.base_url:
            missing.append("base URL")
        if not self.is_pat and not self.email:
            missing.append("email")
        if not self.token:
            missing.append("token")
        return missing

    def get_project_config(self, project_key: Optional[str]) -> ProjectConfig:
        """프로젝트 설정 조회 (없으면 기본값)"""
        if project_key and project_key in self.projects:
            return self.projects[project_key]
        return ProjectConfig()


settings = Settings()

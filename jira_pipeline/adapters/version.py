"""API version adapters - endpoint paths and payload transforms

파이프라인은 이 어댑터를 불투명한 전략 객체로만 호출하며,
버전별 로직은 이 모듈 밖으로 새지 않습니다.
"""

from typing import Any, Dict, List, Optional, Protocol


class ApiVersionAdapter(Protocol):
    """API 버전 어댑터 프로토콜"""

    def get_api_path(self) -> str:
        ...

    def get_search_endpoint(self) -> str:
        ...

    def transform_search_data(
        self,
        query: str,
        page_token: Optional[str],
        max_results: Optional[int],
        fields: List[str],
    ) -> Dict[str, Any]:
        ...

    def transform_search_response(self, raw: Any) -> Dict[str, Any]:
        """검색 응답 정규화

        Returns:
            {"issues": [...], "next_page_token": Optional[str], "total": Optional[int]}
        """
        ...

    def transform_comment_data(self, text: str) -> Dict[str, Any]:
        ...


class V2Adapter:
    """REST API v2 (Server/Data Center): startAt 페이징, 평문 코멘트"""

    api_version = "2"

    def get_api_path(self) -> str:
        return "/rest/api/2"

    def get_search_endpoint(self) -> str:
        return f"{self.get_api_path()}/search"

    def transform_search_data(
        self,
        query: str,
        page_token: Optional[str],
        max_results: Optional[int],
        fields: List[str],
    ) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "jql": query,
            "fields": fields,
            "startAt": int(page_token) if page_token else 0,
        }
        if max_results is not None:
            data["maxResults"] = max_results
        return data

    def transform_search_response(self, raw: Any) -> Dict[str, Any]:
        raw = raw or {}
        issues = raw.get("issues") or []
        start_at = int(raw.get("startAt") or 0)
        total = raw.get("total")
        next_start = start_at + len(issues)
        has_more = bool(issues) and total is not None and next_start < int(total)
        return {
            "issues": issues,
            "next_page_token": str(next_start) if has_more else None,
            "total": total,
        }

    def transform_comment_data(self, text: str) -> Dict[str, Any]:
        return {"body": text}


class V3Adapter:
    """REST API v3 (Cloud): search/jql + nextPageToken, ADF 코멘트"""

    api_version = "3"

    def get_api_path(self) -> str:
        return "/rest/api/3"

    def get_search_endpoint(self) -> str:
        return f"{self.get_api_path()}/search/jql"

    def transform_search_data(
        self,
        query: str,
        page_token: Optional[str],
        max_results: Optional[int],
        fields: List[str],
    ) -> Dict[str, Any]:
        data: Dict[str, Any] = {"jql": query, "fields": fields}
        if max_results is not None:
            data["maxResults"] = max_results
        if page_token:
            data["nextPageToken"] = page_token
        return data

    def transform_search_response(self, raw: Any) -> Dict[str, Any]:
        raw = raw or {}
        return {
            "issues": raw.get("issues") or [],
            "next_page_token": raw.get("nextPageToken"),
            "total": raw.get("total"),
        }

    def transform_comment_data(self, text: str) -> Dict[str, Any]:
        # Atlassian Document Format: 줄마다 paragraph 하나
        paragraphs = [
            {"type": "paragraph", "content": [{"type": "text", "text": line}]} if line
            else {"type": "paragraph", "content": []}
            for line in text.split("\n")
        ]
        return {"body": {"type": "doc", "version": 1, "content": paragraphs}}


def get_adapter(api_version: str) -> ApiVersionAdapter:
    """버전 문자열로 어댑터 선택 (기본 v3)"""
    if str(api_version).strip() == "2":
        return V2Adapter()
    return V3Adapter()

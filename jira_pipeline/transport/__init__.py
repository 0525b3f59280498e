"""Transport layer (external curl process).

공개 API는 이 파일에서만 export합니다.
"""

from .continuation import Continuation, deliver, run_with_continuation
from .curl_executor import CurlExecutor, staged_body
from .executor import RequestExecutor
from .request import ApiRequest, AuthCredentials, HttpMethod
from .result import ApiResult, Failure, Success, collect_error_messages

__all__ = [
    "ApiRequest",
    "ApiResult",
    "AuthCredentials",
    "Continuation",
    "CurlExecutor",
    "Failure",
    "HttpMethod",
    "RequestExecutor",
    "Success",
    "collect_error_messages",
    "deliver",
    "run_with_continuation",
    "staged_body",
]

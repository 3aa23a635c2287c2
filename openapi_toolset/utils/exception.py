"""异常定义 / Exception Definitions

编译期错误在本地降级处理，调用期错误一律抛给调用方。
Compile-time problems degrade locally; invocation-time errors always reach
the caller.
"""

import json
from typing import Any, Optional


class ToolsetError(Exception):
    """openapi_toolset 基础异常类"""

    def __init__(
        self,
        message: str,
        **kwargs,
    ):
        """初始化异常

        Args:
            message: 错误消息
            kwargs: 详细信息
        """
        msg = message or ""
        if kwargs:
            msg += " " + self.kwargs_str(**kwargs)

        super().__init__(msg)
        self.message = message
        self.details = kwargs

    @classmethod
    def kwargs_str(cls, **kwargs) -> str:
        """获取详细信息字符串

        Returns:
            str: 详细信息字符串
        """
        if not kwargs:
            return ""

        return json.dumps(
            kwargs,
            ensure_ascii=False,
            default=lambda x: getattr(x, "__dict__", str(x)),
        )

    def details_str(self) -> str:
        return self.kwargs_str(**self.details)

    def __str__(self) -> str:
        return self.message


class SpecLoadError(ToolsetError):
    """OpenAPI 文档无法获取或解析 / The document could not be fetched or parsed"""

    def __init__(self, method: str, locator: str, reason: str):
        self.method = method
        self.locator = locator
        super().__init__(
            f"Failed to load OpenAPI spec via {method} ({locator}): {reason}",
            method=method,
            locator=locator,
        )


class ValidationError(ToolsetError):
    """调用参数不合法 / Invocation arguments are invalid"""


class ToolNameCollisionError(ToolsetError):
    """两个操作编译成同一个工具标识 / Two operations compiled to one identifier"""

    def __init__(self, kind: str, key: str, first: str, second: str):
        self.kind = kind
        self.key = key
        super().__init__(
            f"{kind} collision on '{key}': '{first}' and '{second}'",
            first=first,
            second=second,
        )


class HTTPError(ToolsetError):
    """HTTP 异常类"""

    def __init__(
        self,
        status_code: Optional[int],
        message: str,
        body: Any = None,
        **kwargs,
    ):
        self.status_code = status_code
        self.body = body
        super().__init__(message, **kwargs)
        self.details = kwargs

    def __str__(self) -> str:
        if self.status_code is None:
            return f"HTTP request failed: {self.message}"

        body = self.body
        if isinstance(body, (dict, list)):
            body = json.dumps(body, ensure_ascii=False)
        return f"HTTP {self.status_code}: {self.message}. Body: {body}"


class RequestError(HTTPError):
    """API 请求失败（非 2xx 或传输错误）/ Non-2xx response or transport failure"""

    def __init__(
        self,
        status_code: Optional[int],
        message: str,
        body: Any = None,
        method: Optional[str] = None,
        url: Optional[str] = None,
    ):
        self.method = method
        self.url = url
        super().__init__(status_code, message, body=body)


class AuthRecoveryError(ToolsetError):
    """AuthProvider 自身的恢复流程失败 / The auth provider's recovery failed"""

    def __init__(self, message: str, original: Optional[RequestError] = None):
        self.original = original
        super().__init__(message)

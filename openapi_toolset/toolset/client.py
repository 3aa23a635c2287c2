"""工具调用运行时 / Tool Invocation Runtime

把工具标识和参数解析成 HTTP 请求并发送,认证失败时按 AuthProvider 的决定重试一次。
Resolves a tool id plus an argument bag into an HTTP request, dispatches it
and retries once when the AuthProvider recovers from an auth failure.
"""

import re
from typing import Any, Dict, List, Optional, Tuple
from urllib.parse import quote

import httpx

from openapi_toolset.utils.config import Config
from openapi_toolset.utils.exception import (
    AuthRecoveryError,
    RequestError,
    ValidationError,
)
from openapi_toolset.utils.log import logger

from .auth import AuthProvider, is_auth_error
from .model import ParameterLocation, ToolDefinition
from .registry import ToolRegistry
from .tool_id import decode_tool_id, PARAM_MARKER

FORM_MEDIA_TYPE = "application/x-www-form-urlencoded"

_PLACEHOLDER_RE = re.compile(
    r"\{([^/{}]+)\}|(?:^|(?<=/))" + PARAM_MARKER + r"([^/.]+)"
)


def path_placeholders(template: str) -> List[str]:
    """路径模板中的参数名 / Parameter names in a path template

    Examples:
        >>> path_placeholders("/users/---id/posts/{postId}")
        ['id', 'postId']
    """
    return [a or b for a, b in _PLACEHOLDER_RE.findall(template)]


class PreparedRequest:
    """待发送的请求 / A request ready for dispatch

    认证头在每次发送时单独合并,重试时只替换认证头。
    Auth headers are merged per attempt so a retry only swaps them.
    Precedence, low to high: default headers, auth headers, argument headers.
    """

    __slots__ = (
        "method",
        "url",
        "default_headers",
        "headers",
        "params",
        "json",
        "data",
    )

    def __init__(
        self,
        method: str,
        url: str,
        default_headers: Dict[str, str],
        headers: Dict[str, str],
        params: Dict[str, Any],
        json: Any = None,
        data: Optional[Dict[str, Any]] = None,
    ):
        self.method = method
        self.url = url
        self.default_headers = default_headers
        self.headers = headers
        self.params = params
        self.json = json
        self.data = data

    def to_kwargs(self, auth_headers: Dict[str, str]) -> Dict[str, Any]:
        headers = dict(self.default_headers)
        headers.update(auth_headers)
        headers.update(self.headers)
        request_kwargs: Dict[str, Any] = {
            "method": self.method,
            "url": self.url,
            "headers": headers,
        }
        if self.params:
            request_kwargs["params"] = self.params
        if self.data is not None:
            request_kwargs["data"] = self.data
        elif self.json is not None:
            request_kwargs["json"] = self.json
        return request_kwargs


def render_path(template: str, values: Dict[str, Any]) -> str:
    """替换路径参数 / Substitute path parameters into a template

    占位符可以是 ``{name}`` 或编码后的 ``---name``,只在段边界处匹配,
    因此 ``{user}`` 不会影响 ``{userId}``。
    Placeholders are ``{name}`` or the encoded ``---name`` form and only
    match up to a segment boundary, so ``{user}`` never touches ``{userId}``.

    Examples:
        >>> render_path("/users/{user}/items/{userId}", {"user": "a b"})
        '/users/a%20b/items/{userId}'
    """
    rendered = template
    for name, value in values.items():
        escaped = re.escape(name)
        pattern = re.compile(
            r"\{" + escaped + r"\}|" + PARAM_MARKER + escaped + r"(?=[/.]|$)"
        )
        encoded = quote(str(value), safe="")
        rendered = pattern.sub(lambda _: encoded, rendered)
    return rendered


def join_url(base_url: str, path: str) -> str:
    if not base_url:
        raise ValidationError("Base URL cannot be empty.")
    if not path:
        return base_url
    return f"{base_url.rstrip('/')}/{path.lstrip('/')}"


def parse_response(response: httpx.Response) -> Any:
    """解析响应体:JSON、文本或 None / Parsed JSON, text or None"""
    if not response.content:
        return None
    content_type = response.headers.get("content-type", "").lower()
    if "json" in content_type:
        try:
            return response.json()
        except ValueError:
            return response.text
    return response.text


class ApiClient:
    """API 客户端 / API client for compiled tools

    Args:
        base_url: API 根地址 / API base URL
        auth_provider: 认证提供者 / Credential provider
        registry: 工具注册表,用于按位置分配参数 / Registry routing arguments
        headers: 默认请求头 / Default headers
        timeout: 请求超时(秒) / Request timeout in seconds
        transport: 自定义 httpx 传输层 / Custom httpx transport
        config: 配置,提供默认地址、请求头和超时 / Config defaults
    """

    def __init__(
        self,
        base_url: Optional[str] = None,
        auth_provider: Optional[AuthProvider] = None,
        registry: Optional[ToolRegistry] = None,
        headers: Optional[Dict[str, str]] = None,
        timeout: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        config: Optional[Config] = None,
    ):
        self._base_url = base_url or (config.get_base_url() if config else "")
        self._auth_provider = auth_provider
        self._registry = registry
        self._headers: Dict[str, str] = {}
        if config:
            self._headers.update(config.get_headers())
        self._headers.update(headers or {})
        self._timeout = (
            timeout or (config.get_timeout() if config else None) or 60
        )
        self._transport = transport

    @property
    def base_url(self) -> Optional[str]:
        return self._base_url

    @property
    def registry(self) -> Optional[ToolRegistry]:
        return self._registry

    def with_registry(self, registry: ToolRegistry) -> "ApiClient":
        """使用新注册表的客户端副本 / Copy bound to another registry"""
        return ApiClient(
            base_url=self._base_url,
            auth_provider=self._auth_provider,
            registry=registry,
            headers=self._headers,
            timeout=self._timeout,
            transport=self._transport,
        )

    async def invoke(
        self, tool_id: str, args: Optional[Dict[str, Any]] = None
    ) -> Any:
        """调用工具 / Invoke a tool

        Args:
            tool_id: ``METHOD::encodedPath`` 形式的工具标识 / The tool id
            args: 参数 / Argument bag

        Returns:
            Any: 响应体 / The response body

        Raises:
            ValidationError: 标识或参数不合法 / Invalid id or arguments
            RequestError: 非 2xx 响应或传输失败 / Non-2xx or transport failure
            AuthRecoveryError: 认证恢复失败 / Auth recovery failed
        """
        request = self.prepare(tool_id, args)

        auth_headers = await self._get_auth_headers()
        try:
            return await self._send(request, auth_headers)
        except RequestError as error:
            if self._auth_provider is None or not is_auth_error(error):
                raise
            try:
                should_retry = await self._auth_provider.handle_auth_error(
                    error
                )
                if should_retry:
                    auth_headers = await self._get_auth_headers()
            except Exception as e:
                raise AuthRecoveryError(
                    f"Auth recovery failed after HTTP {error.status_code}: {e}",
                    original=error,
                ) from e
            if not should_retry:
                raise

        logger.debug(
            "retrying %s %s with refreshed credentials",
            request.method,
            request.url,
        )
        return await self._send(request, auth_headers)

    def prepare(
        self, tool_id: str, args: Optional[Dict[str, Any]] = None
    ) -> PreparedRequest:
        """把工具调用解析成请求 / Resolve a tool call into a request"""
        method, decoded_path = decode_tool_id(tool_id)
        tool = self._registry.get(tool_id) if self._registry else None
        template = tool.original_path if tool else decoded_path

        path_values: Dict[str, Any] = {}
        params: Dict[str, Any] = {}
        headers: Dict[str, str] = {}
        cookies: List[Tuple[str, str]] = []
        body: Dict[str, Any] = {}
        wrapped_body: Any = None

        for name, value in (args or {}).items():
            if value is None:
                continue
            location = tool.location_of(name) if tool else None
            if location is None:
                if tool is not None:
                    logger.debug(
                        "argument %s is not declared by %s; sent as query",
                        name,
                        tool_id,
                    )
                location = ParameterLocation.QUERY

            if location == ParameterLocation.PATH:
                path_values[name] = value
            elif location == ParameterLocation.QUERY:
                params[name] = self._query_value(value)
            elif location == ParameterLocation.HEADER:
                headers[name] = str(value)
            elif location == ParameterLocation.COOKIE:
                cookies.append((name, str(value)))
            elif tool is not None and tool.body_wrapped:
                wrapped_body = value
            else:
                body[tool.wire_name(name)] = value

        missing = [
            name
            for name in path_placeholders(template)
            if name not in path_values
        ]
        if missing:
            raise ValidationError(
                f"Missing path parameters for {tool_id}: {', '.join(missing)}",
                missing=missing,
            )
        path = render_path(template, path_values)

        if cookies:
            cookie = "; ".join(f"{k}={v}" for k, v in cookies)
            if headers.get("Cookie"):
                cookie = f"{headers['Cookie']}; {cookie}"
            headers["Cookie"] = cookie

        base_url = self._base_url or (tool.server_url if tool else None)
        if not base_url:
            raise ValidationError(
                "Base URL is required to invoke an OpenAPI tool. Provide it "
                "via base_url or the document's servers.",
                tool_id=tool_id,
            )

        payload = wrapped_body if wrapped_body is not None else body or None
        media_type = tool.body_media_type if tool else None
        data = None
        if payload is not None and media_type == FORM_MEDIA_TYPE:
            if isinstance(payload, dict):
                data, payload = payload, None

        return PreparedRequest(
            method=method,
            url=join_url(base_url, path),
            default_headers=dict(self._headers),
            headers=headers,
            params=params,
            json=payload,
            data=data,
        )

    @staticmethod
    def _query_value(value: Any) -> Any:
        if isinstance(value, (list, tuple, set)):
            return ",".join(str(v) for v in value)
        return value

    async def _get_auth_headers(self) -> Dict[str, str]:
        if self._auth_provider is None:
            return {}
        return dict(await self._auth_provider.get_auth_headers() or {})

    async def _send(
        self, request: PreparedRequest, auth_headers: Dict[str, str]
    ) -> Any:
        logger.debug("dispatching %s %s", request.method, request.url)
        try:
            async with httpx.AsyncClient(
                timeout=self._timeout, transport=self._transport
            ) as client:
                response = await client.request(
                    **request.to_kwargs(auth_headers)
                )
        except httpx.HTTPError as e:
            raise RequestError(
                None,
                str(e) or repr(e),
                method=request.method,
                url=request.url,
            ) from e

        body = parse_response(response)
        if not response.is_success:
            raise RequestError(
                response.status_code,
                f"{request.method} {request.url} failed",
                body=body,
                method=request.method,
                url=request.url,
            )
        return body

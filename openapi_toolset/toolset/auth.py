"""认证提供者 / Auth Providers

调用运行时只通过两个操作与凭证交互:获取当前请求头,以及在认证失败时决定是否重试。
The invocation runtime sees credentials through two operations only:
producing the current headers and reacting to an authentication failure.
"""

from abc import ABC, abstractmethod
import asyncio
from typing import Awaitable, Callable, Dict, Optional

from openapi_toolset.utils.exception import ToolsetError
from openapi_toolset.utils.log import logger

AUTH_ERROR_STATUS_CODES = frozenset({401, 403})


def is_auth_error(error: BaseException) -> bool:
    """是否为认证失败 (401/403) / Whether the error is an auth failure"""
    return getattr(error, "status_code", None) in AUTH_ERROR_STATUS_CODES


class AuthProvider(ABC):
    """认证提供者接口 / AuthProvider contract"""

    @abstractmethod
    async def get_auth_headers(self) -> Dict[str, str]:
        """返回当前的认证请求头 / Current auth headers"""

    @abstractmethod
    async def handle_auth_error(self, error: BaseException) -> bool:
        """处理认证失败,返回是否重试 / Recover and tell whether to retry"""


class StaticAuthProvider(AuthProvider):
    """固定请求头,从不重试 / Fixed headers, never retries"""

    def __init__(self, headers: Optional[Dict[str, str]] = None):
        self._headers = dict(headers or {})

    async def get_auth_headers(self) -> Dict[str, str]:
        return dict(self._headers)

    async def handle_auth_error(self, error: BaseException) -> bool:
        return False


class RefreshingAuthProvider(AuthProvider):
    """可刷新凭证的认证提供者 / Provider with refreshable credentials

    并发的认证失败共享同一次刷新:第一个调用方启动 ``refresh()``,
    其余调用方等待同一个任务,不会重复刷新。
    Concurrent auth failures share one refresh: the first caller starts
    ``refresh()`` and later callers await the same task.
    """

    def __init__(self):
        self._refresh_task: Optional["asyncio.Task[None]"] = None
        self._refresh_count = 0

    @property
    def refresh_count(self) -> int:
        return self._refresh_count

    @abstractmethod
    async def refresh(self) -> None:
        """刷新内部凭证 / Refresh the internal credential state"""

    async def handle_auth_error(self, error: BaseException) -> bool:
        if not is_auth_error(error):
            return False
        await self._refresh_once()
        return True

    async def _refresh_once(self) -> None:
        task = self._refresh_task
        if task is None:
            logger.debug("refreshing credentials for %s", type(self).__name__)
            task = asyncio.ensure_future(self._run_refresh())
            self._refresh_task = task
        # shield 防止单个调用方取消时中断共享的刷新
        await asyncio.shield(task)

    async def _run_refresh(self) -> None:
        try:
            self._refresh_count += 1
            await self.refresh()
        finally:
            self._refresh_task = None


class BearerTokenAuthProvider(RefreshingAuthProvider):
    """基于令牌工厂的 Bearer 认证 / Bearer auth from an async token factory

    Args:
        fetch_token: 返回新令牌的异步函数 / Async callable returning a token
        token: 初始令牌,为空时首次请求前获取 / Initial token, fetched lazily
    """

    def __init__(
        self,
        fetch_token: Callable[[], Awaitable[str]],
        token: Optional[str] = None,
    ):
        super().__init__()
        self._fetch_token = fetch_token
        self._token = token

    @property
    def token(self) -> Optional[str]:
        return self._token

    async def refresh(self) -> None:
        token = await self._fetch_token()
        if not token:
            raise ToolsetError("token factory returned an empty token")
        self._token = token

    async def get_auth_headers(self) -> Dict[str, str]:
        if self._refresh_task is not None:
            await asyncio.shield(self._refresh_task)
        if not self._token:
            await self._refresh_once()
        return {"Authorization": f"Bearer {self._token}"}

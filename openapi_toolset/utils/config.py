"""配置管理模块 / Configuration Management Module

此模块提供 openapi_toolset 的配置管理功能。
This module provides configuration management for openapi_toolset.
"""

import os
from typing import Dict, List, Optional

from dotenv import load_dotenv

load_dotenv()


def get_env_with_default(default: str, *key: str) -> str:
    """从环境变量获取值,支持多个候选键 / Get value from environment variables with multiple fallback keys

    Args:
        default: 默认值 / Default value
        *key: 候选环境变量名 / Candidate environment variable names

    Returns:
        str: 环境变量值或默认值 / Environment variable value or default value
    """
    for k in key:
        v = os.getenv(k)
        if v is not None:
            return v
    return default


def parse_headers(header_str: Optional[str]) -> Dict[str, str]:
    """解析 'key1:value1,key2:value2' 格式的请求头 / Parse a header string

    Malformed entries (no colon, empty key or value) are skipped.

    Examples:
        >>> parse_headers("Authorization:Bearer x, X-Id: 1")
        {'Authorization': 'Bearer x', 'X-Id': '1'}
    """
    headers: Dict[str, str] = {}
    if not header_str:
        return headers

    for item in header_str.split(","):
        key, sep, value = item.partition(":")
        key, value = key.strip(), value.strip()
        if sep and key and value:
            headers[key] = value
    return headers


def parse_list(value: Optional[str]) -> List[str]:
    """解析逗号分隔列表 / Parse a comma separated list"""
    if not value:
        return []
    return [item.strip() for item in value.split(",") if item.strip()]


def parse_bool(value: Optional[str]) -> Optional[bool]:
    """解析布尔开关,未设置时返回 None / Parse a flag, None when unset"""
    if not value or not value.strip():
        return None
    return value.strip().lower() in {"1", "true", "yes", "on"}


class Config:
    """openapi_toolset 配置类 / openapi_toolset Configuration Class

    支持从参数或环境变量读取配置,参数优先。
    Supports reading configuration from parameters or environment variables;
    parameters take precedence.

    Examples:
        >>> config = Config(
        ...     base_url="https://api.example.com",
        ...     openapi_spec="./openapi.yaml",
        ... )
        >>> # 或从环境变量读取 / Or read from environment variables
        >>> config = Config()
    """

    __slots__ = (
        "_base_url",
        "_openapi_spec",
        "_spec_method",
        "_headers",
        "_timeout",
        "_disable_abbreviation",
        "_include_tools",
        "_include_operations",
        "_include_resources",
        "_include_tags",
        "_strict",
        "__weakref__",
    )

    def __init__(
        self,
        base_url: Optional[str] = None,
        openapi_spec: Optional[str] = None,
        spec_method: Optional[str] = None,
        headers: Optional[Dict[str, str]] = None,
        timeout: Optional[float] = None,
        disable_abbreviation: Optional[bool] = None,
        include_tools: Optional[List[str]] = None,
        include_operations: Optional[List[str]] = None,
        include_resources: Optional[List[str]] = None,
        include_tags: Optional[List[str]] = None,
        strict: Optional[bool] = None,
    ) -> None:
        """初始化配置 / Initialize configuration

        Args:
            base_url: API 基础地址 / Base URL of the described API
                未提供时从环境变量读取: API_BASE_URL
            openapi_spec: OpenAPI 文档位置 / Locator of the OpenAPI document
                未提供时从环境变量读取: OPENAPI_SPEC_PATH
            spec_method: 文档获取方式 auto/url/file/stdin/inline
                未提供时从环境变量读取: OPENAPI_SPEC_METHOD, 默认 auto
            headers: 默认请求头 / Default request headers
                未提供时从环境变量读取: API_HEADERS ('k1:v1,k2:v2')
            timeout: 请求超时时间(秒),默认 60 / Request timeout in seconds
            disable_abbreviation: 关闭工具名缩写 / Keep literal tool names
            include_tools: 仅保留的工具 id 或名称 / Tool ids or names to keep
            include_operations: 仅保留的 HTTP 方法 / HTTP methods to keep
            include_resources: 仅保留的资源名 / Resource names to keep
            include_tags: 仅保留的标签 / Tags to keep
            strict: 工具标识冲突时报错 / Raise on identifier collisions
        """

        if base_url is None:
            base_url = get_env_with_default("", "API_BASE_URL")
        if openapi_spec is None:
            openapi_spec = get_env_with_default("", "OPENAPI_SPEC_PATH")
        if spec_method is None:
            spec_method = get_env_with_default("", "OPENAPI_SPEC_METHOD")
        if headers is None:
            headers = parse_headers(get_env_with_default("", "API_HEADERS"))
        if timeout is None:
            env_timeout = get_env_with_default("", "TOOLSET_TIMEOUT")
            timeout = float(env_timeout) if env_timeout else None
        if disable_abbreviation is None:
            disable_abbreviation = parse_bool(
                get_env_with_default("", "DISABLE_ABBREVIATION")
            )
        if include_tools is None:
            include_tools = parse_list(
                get_env_with_default("", "INCLUDE_TOOLS")
            )
        if include_operations is None:
            include_operations = parse_list(
                get_env_with_default("", "INCLUDE_OPERATIONS")
            )
        if include_resources is None:
            include_resources = parse_list(
                get_env_with_default("", "INCLUDE_RESOURCES")
            )
        if include_tags is None:
            include_tags = parse_list(get_env_with_default("", "INCLUDE_TAGS"))
        if strict is None:
            strict = parse_bool(get_env_with_default("", "TOOLSET_STRICT"))

        self._base_url = base_url
        self._openapi_spec = openapi_spec
        self._spec_method = spec_method
        self._headers = headers or {}
        self._timeout = timeout
        self._disable_abbreviation = disable_abbreviation
        self._include_tools = include_tools
        self._include_operations = include_operations
        self._include_resources = include_resources
        self._include_tags = include_tags
        self._strict = strict

    @classmethod
    def with_configs(cls, *configs: Optional["Config"]) -> "Config":
        return cls().update(*configs)

    def update(self, *configs: Optional["Config"]) -> "Config":
        """
        使用给定的配置对象更新当前实例,优先使用靠后的值

        Args:
            configs: 要合并的配置对象

        Returns:
            合并后的配置对象
        """

        for config in configs:
            if config is None:
                continue

            for attr in filter(
                lambda x: x != "__weakref__",
                self.__slots__,
            ):
                value = getattr(config, attr)
                if value is None:
                    continue
                if type(value) is dict:
                    getattr(self, attr).update(value)
                elif type(value) is list:
                    if value:
                        setattr(self, attr, list(value))
                elif type(value) is str:
                    if value:
                        setattr(self, attr, value)
                else:
                    setattr(self, attr, value)

        return self

    def __repr__(self) -> str:

        return "Config{%s}" % (
            ", ".join([
                f'"{key}": "{getattr(self, key)}"'
                for key in self.__slots__
                if key != "__weakref__"
            ])
        )

    def get_base_url(self) -> Optional[str]:
        """获取 API 基础地址"""
        return self._base_url or None

    def get_openapi_spec(self) -> Optional[str]:
        """获取 OpenAPI 文档位置"""
        return self._openapi_spec or None

    def get_spec_method(self) -> str:
        """获取文档获取方式"""
        return (self._spec_method or "auto").lower()

    def get_headers(self) -> Dict[str, str]:
        """获取默认请求头"""
        return self._headers or {}

    def get_timeout(self) -> float:
        """获取请求超时时间"""
        return self._timeout or 60

    def get_disable_abbreviation(self) -> bool:
        return bool(self._disable_abbreviation)

    def get_include_tools(self) -> List[str]:
        return self._include_tools or []

    def get_include_operations(self) -> List[str]:
        return self._include_operations or []

    def get_include_resources(self) -> List[str]:
        return self._include_resources or []

    def get_include_tags(self) -> List[str]:
        return self._include_tags or []

    def get_strict(self) -> bool:
        return bool(self._strict)

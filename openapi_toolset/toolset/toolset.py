"""工具集 / ToolSet

把编译器、注册表和调用运行时组合在一起的入口。
Entry point wiring the compiler, the registry and the invocation runtime.
"""

from typing import Any, Dict, List, Optional, TextIO, Union

import httpx

from openapi_toolset.utils.config import Config
from openapi_toolset.utils.exception import ValidationError
from openapi_toolset.utils.log import logger

from .api.loader import load_spec, parse_spec_text
from .api.openapi import OpenAPICompiler
from .auth import AuthProvider
from .client import ApiClient
from .model import CompileDiagnostic, ToolDefinition
from .naming import NameCompressor
from .registry import ToolRegistry
from .tool_id import ID_SEPARATOR


class ToolSet:
    """基于 OpenAPI 文档的工具集 / Toolset compiled from an OpenAPI document

    注册表在构建后只读;``reload`` 整体替换注册表,进行中的调用继续使用旧注册表。
    The registry is read-only once built; ``reload`` swaps it wholesale and
    invocations already in flight keep the registry they started with.
    """

    def __init__(
        self,
        registry: ToolRegistry,
        client: ApiClient,
        config: Optional[Config] = None,
        compressor: Optional[NameCompressor] = None,
    ):
        self._registry = registry
        self._client = client
        self._config = config or Config()
        self._compressor = compressor

    @classmethod
    def from_openapi_schema(
        cls,
        schema: Union[str, bytes, Dict[str, Any]],
        base_url: Optional[str] = None,
        auth_provider: Optional[AuthProvider] = None,
        headers: Optional[Dict[str, str]] = None,
        config: Optional[Config] = None,
        timeout: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        compressor: Optional[NameCompressor] = None,
    ) -> "ToolSet":
        """从 OpenAPI 文档创建工具集

        Args:
            schema: OpenAPI 文档 (JSON/YAML 字符串或字典)
                The document as a JSON/YAML string or a parsed dict
            base_url: API 根地址,默认取文档的 servers
                Base URL, defaults to the document's servers
            auth_provider: 认证提供者 / Credential provider
            headers: 默认请求头 / Default headers
            config: 配置对象 / Config
            timeout: 请求超时 / Request timeout
            transport: 自定义 httpx 传输层 / Custom httpx transport
            compressor: 自定义名称压缩器 / Custom name compressor
        """
        config = config or Config()
        registry = cls._compile(schema, config, compressor)
        client = ApiClient(
            base_url=base_url,
            auth_provider=auth_provider,
            registry=registry,
            headers=headers,
            timeout=timeout,
            transport=transport,
            config=config,
        )
        return cls(registry, client, config=config, compressor=compressor)

    @classmethod
    async def from_config(
        cls,
        config: Optional[Config] = None,
        auth_provider: Optional[AuthProvider] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        inline_content: Optional[str] = None,
        stdin: Optional[TextIO] = None,
    ) -> "ToolSet":
        """按配置加载文档并创建工具集 / Load the document named by config"""
        config = Config.with_configs(config)
        document = await load_spec(
            config.get_openapi_spec(),
            method=config.get_spec_method(),
            inline_content=inline_content,
            stdin=stdin,
            timeout=config.get_timeout(),
        )
        return cls.from_openapi_schema(
            document,
            auth_provider=auth_provider,
            config=config,
            transport=transport,
        )

    @staticmethod
    def _compile(
        schema: Union[str, bytes, Dict[str, Any]],
        config: Config,
        compressor: Optional[NameCompressor],
    ) -> ToolRegistry:
        if isinstance(schema, dict):
            document = schema
        else:
            document = parse_spec_text(schema, "inline", "<inline>")

        registry = OpenAPICompiler(
            document,
            compressor=compressor,
            disable_abbreviation=config.get_disable_abbreviation(),
            strict=config.get_strict(),
        ).compile()
        registry = registry.filtered(
            include_tools=config.get_include_tools(),
            include_operations=config.get_include_operations(),
            include_resources=config.get_include_resources(),
            include_tags=config.get_include_tags(),
        )
        logger.info("compiled %d tools from OpenAPI document", len(registry))
        return registry

    @property
    def registry(self) -> ToolRegistry:
        return self._registry

    @property
    def diagnostics(self) -> List[CompileDiagnostic]:
        return list(self._registry.diagnostics)

    def tools(self) -> List[ToolDefinition]:
        """返回所有工具列表"""
        return self._registry.tools()

    def get_tool(self, id_or_name: str) -> Optional[ToolDefinition]:
        """按工具标识或名称获取工具"""
        return self._registry.find(id_or_name)

    async def invoke(
        self, id_or_name: str, args: Optional[Dict[str, Any]] = None
    ) -> Any:
        """调用指定的工具 / Invoke a tool by id or name

        不在注册表中的工具标识也会被调用,参数全部作为查询参数发送。
        Ids missing from the registry are still dispatched, with every
        argument sent as a query parameter.
        """
        client = self._client
        tool = client.registry.find(id_or_name) if client.registry else None
        if tool is not None:
            tool_id = tool.tool_id
        elif ID_SEPARATOR in id_or_name:
            tool_id = id_or_name
        else:
            raise ValidationError(f"Tool '{id_or_name}' not found.")
        return await client.invoke(tool_id, args)

    def reload(self, schema: Union[str, bytes, Dict[str, Any]]) -> None:
        """用新文档整体替换注册表 / Swap in a registry built from a new document"""
        registry = self._compile(schema, self._config, self._compressor)
        self._client = self._client.with_registry(registry)
        self._registry = registry

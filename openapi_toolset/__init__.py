"""OpenAPI Toolset / OpenAPI Toolset

把 OpenAPI 文档描述的 REST API 暴露为可供 Agent 调用的工具,并把工具调用执行为 HTTP 请求。
Exposes a REST API described by an OpenAPI document as tools an agent can
call, and executes those calls as HTTP requests.

主要功能 / Main Features:
- Compiler: 把 OpenAPI 操作编译为工具定义 / Compile operations into tools
- Registry: 只读的工具注册表 / Read-only tool registry
- Runtime: 调用工具并处理认证重试 / Invoke tools with auth retry
"""

__version__ = "0.1.0"

from openapi_toolset.toolset import (
    ApiClient,
    AuthProvider,
    BearerTokenAuthProvider,
    compile_openapi,
    CompileDiagnostic,
    compress_name,
    decode_tool_id,
    encode_tool_id,
    is_auth_error,
    load_spec,
    NameCompressor,
    OpenAPICompiler,
    ParameterLocation,
    RefreshingAuthProvider,
    StaticAuthProvider,
    ToolDefinition,
    ToolRegistry,
    ToolSet,
)
from openapi_toolset.utils.config import Config
from openapi_toolset.utils.exception import (
    AuthRecoveryError,
    HTTPError,
    RequestError,
    SpecLoadError,
    ToolNameCollisionError,
    ToolsetError,
    ValidationError,
)

__all__ = [
    "__version__",
    # ToolSet
    "ToolSet",
    "ApiClient",
    "ToolRegistry",
    "ToolDefinition",
    "ParameterLocation",
    "CompileDiagnostic",
    "OpenAPICompiler",
    "compile_openapi",
    "load_spec",
    "encode_tool_id",
    "decode_tool_id",
    "NameCompressor",
    "compress_name",
    # Auth
    "AuthProvider",
    "StaticAuthProvider",
    "RefreshingAuthProvider",
    "BearerTokenAuthProvider",
    "is_auth_error",
    # Config
    "Config",
    # Exceptions
    "ToolsetError",
    "SpecLoadError",
    "ValidationError",
    "ToolNameCollisionError",
    "HTTPError",
    "RequestError",
    "AuthRecoveryError",
]

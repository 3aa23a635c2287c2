"""ToolSet 模块 / ToolSet Module"""

from .api import compile_openapi, load_spec, OpenAPICompiler
from .auth import (
    AuthProvider,
    BearerTokenAuthProvider,
    is_auth_error,
    RefreshingAuthProvider,
    StaticAuthProvider,
)
from .client import ApiClient
from .model import (
    CompileDiagnostic,
    DiagnosticKind,
    LOCATION_KEY,
    ParameterLocation,
    ParameterSpec,
    ToolDefinition,
)
from .naming import compress_name, NameCompressor
from .registry import ToolRegistry
from .schema import inline_schema, SchemaInliner
from .tool_id import decode_tool_id, DecodedToolId, encode_tool_id
from .toolset import ToolSet

__all__ = [
    # base
    "ToolSet",
    "ApiClient",
    "ToolRegistry",
    "OpenAPICompiler",
    "compile_openapi",
    "load_spec",
    # auth
    "AuthProvider",
    "StaticAuthProvider",
    "RefreshingAuthProvider",
    "BearerTokenAuthProvider",
    "is_auth_error",
    # model
    "CompileDiagnostic",
    "DiagnosticKind",
    "LOCATION_KEY",
    "ParameterLocation",
    "ParameterSpec",
    "ToolDefinition",
    # codec & naming
    "encode_tool_id",
    "decode_tool_id",
    "DecodedToolId",
    "NameCompressor",
    "compress_name",
    "SchemaInliner",
    "inline_schema",
]

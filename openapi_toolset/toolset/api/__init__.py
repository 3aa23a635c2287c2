"""OpenAPI 文档加载与编译 / OpenAPI Document Loading and Compilation"""

from .loader import load_spec, parse_spec_text, SPEC_METHODS
from .openapi import (
    compile_openapi,
    extract_resource_name,
    OpenAPICompiler,
    pick_server_url,
)

__all__ = [
    "load_spec",
    "parse_spec_text",
    "SPEC_METHODS",
    "compile_openapi",
    "extract_resource_name",
    "OpenAPICompiler",
    "pick_server_url",
]

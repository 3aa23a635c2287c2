"""ToolSet 模型定义 / ToolSet Model Definitions

定义工具集相关的数据模型和枚举。
Defines data models and enumerations related to toolsets.
"""

from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import ConfigDict

from openapi_toolset.utils.model import BaseModel, Field

LOCATION_KEY = "x-parameter-location"
"""输入属性上记录参数位置的扩展字段 / Schema extension holding the location"""

ORIGINAL_NAME_KEY = "x-original-name"
"""被重命名的 body 属性的原始名称 / Original name of a renamed body property"""


class ParameterLocation(str, Enum):
    """参数位置 / Parameter Location"""

    PATH = "path"
    QUERY = "query"
    HEADER = "header"
    COOKIE = "cookie"
    BODY = "body"

    @classmethod
    def parse(cls, value: Any) -> Optional["ParameterLocation"]:
        try:
            return cls(str(value).lower())
        except ValueError:
            return None


class DiagnosticKind(str, Enum):
    SCHEMA_RESOLUTION = "schema_resolution"
    INVALID_PARAMETER = "invalid_parameter"
    INVALID_FIELD = "invalid_field"
    TOOL_ID_COLLISION = "tool_id_collision"
    TOOL_NAME_COLLISION = "tool_name_collision"


class CompileDiagnostic(BaseModel):
    """编译期诊断信息,不会中断编译 / Non-fatal compile-time diagnostic"""

    kind: DiagnosticKind
    location: str = ""
    message: str = ""


class ParameterSpec(BaseModel):
    """已解析的参数记录 / Resolved parameter record

    直接参数和 ``#/components/parameters`` 引用在编译时都会被解析成这个结构。
    Both inline parameters and component references resolve to this record
    once, at compile time.
    """

    name: str
    location: ParameterLocation
    required: bool = False
    description: Optional[str] = None
    schema_: Dict[str, Any] = Field(default_factory=dict, alias="schema")

    @property
    def key(self) -> str:
        return f"{self.location.value}:{self.name}"


class ToolDefinition(BaseModel):
    """编译后的工具定义 / Compiled tool definition

    每个 (method, path) 操作生成一个,创建后不可修改。
    One per (method, path) operation; immutable once built.
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    tool_id: str
    name: str
    description: str = ""
    input_schema: Dict[str, Any] = Field(
        default_factory=lambda: {"type": "object", "properties": {}}
    )
    original_path: str
    http_method: str
    tags: List[str] = Field(default_factory=list)
    resource_name: Optional[str] = None
    body_wrapped: bool = False
    body_media_type: Optional[str] = None
    server_url: Optional[str] = None

    @property
    def properties(self) -> Dict[str, Any]:
        return self.input_schema.get("properties") or {}

    def location_of(self, argument: str) -> Optional[ParameterLocation]:
        """返回参数声明的位置 / Declared location of an argument"""
        prop = self.properties.get(argument)
        if not isinstance(prop, dict):
            return None
        return ParameterLocation.parse(prop.get(LOCATION_KEY))

    def wire_name(self, argument: str) -> str:
        """参数在请求中的名称 / Name the argument is sent under"""
        prop = self.properties.get(argument)
        if isinstance(prop, dict) and prop.get(ORIGINAL_NAME_KEY):
            return prop[ORIGINAL_NAME_KEY]
        return argument

    def to_tool_info(self) -> Dict[str, Any]:
        """协议层对外暴露的工具描述 / Tool description advertised to agents"""
        return {
            "name": self.name,
            "description": self.description,
            "inputSchema": self.input_schema,
        }

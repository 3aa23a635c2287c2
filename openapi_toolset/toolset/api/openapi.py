"""OpenAPI 编译 / OpenAPI Compilation

将 OpenAPI 文档编译为以工具标识为键的工具定义。
Compiles an OpenAPI document into tool definitions keyed by tool id.
"""

from copy import deepcopy
import re
from typing import Any, Dict, Iterator, List, Optional, Tuple

from pydash import get as pg

from openapi_toolset.utils.exception import ToolNameCollisionError
from openapi_toolset.utils.log import logger

from ..model import (
    CompileDiagnostic,
    DiagnosticKind,
    LOCATION_KEY,
    ORIGINAL_NAME_KEY,
    ParameterLocation,
    ParameterSpec,
    ToolDefinition,
)
from ..naming import MAX_TOOL_NAME_LEN, NameCompressor, with_suffix
from ..registry import ToolRegistry
from ..schema import SchemaInliner, unescape_pointer
from ..tool_id import encode_tool_id

SUPPORTED_METHODS = {
    "DELETE",
    "GET",
    "HEAD",
    "OPTIONS",
    "PATCH",
    "POST",
    "PUT",
}

JSON_MEDIA_TYPE = "application/json"
FORM_MEDIA_TYPE = "application/x-www-form-urlencoded"

_COMPOSITION_KEYS = ("type", "oneOf", "anyOf", "allOf", "not")
_SERVER_VARIABLE_RE = re.compile(r"\{([^{}]+)\}")


def _server_url(server: Any) -> Optional[str]:
    if isinstance(server, str):
        return server or None
    if not isinstance(server, dict) or not server.get("url"):
        return None

    variables = server.get("variables")
    if not isinstance(variables, dict):
        variables = {}

    def substitute(match: "re.Match[str]") -> str:
        default = pg(variables, [match.group(1), "default"])
        return match.group(0) if default is None else str(default)

    return _SERVER_VARIABLE_RE.sub(substitute, str(server["url"]))


def pick_server_url(*candidates: Any) -> Optional[str]:
    """按顺序取第一个可用的 server 地址 / First usable server url

    Each candidate is a ``servers`` value (a list, a single server object or
    a bare url), tried in order. Server variables take their defaults.
    """
    for servers in candidates:
        if isinstance(servers, (str, dict)):
            servers = [servers]
        if not isinstance(servers, list):
            continue
        for server in servers:
            url = _server_url(server)
            if url:
                return url
    return None


def extract_resource_name(path: str) -> Optional[str]:
    """路径中最后一个非参数段 / Last path segment that is not a parameter"""
    for segment in reversed([s for s in path.split("/") if s]):
        if "{" not in segment and "}" not in segment:
            return segment
    return None


class OpenAPICompiler:
    """OpenAPI 文档编译器 / OpenAPI document compiler

    编译期问题(无效引用、无效参数)只记录诊断信息,不会中断编译。
    Compile-time problems (bad references, bad parameters) are recorded as
    diagnostics and never abort compilation.

    Args:
        document: 已解析的 OpenAPI 文档 / The parsed OpenAPI document
        compressor: 工具名压缩器 / Tool name compressor
        disable_abbreviation: 未提供 compressor 时使用完整单词
            Keep full words when no compressor is given
        strict: 标识冲突时抛出 ``ToolNameCollisionError``
            Raise ``ToolNameCollisionError`` on identifier collisions
    """

    def __init__(
        self,
        document: Dict[str, Any],
        compressor: Optional[NameCompressor] = None,
        disable_abbreviation: bool = False,
        strict: bool = False,
    ):
        self._document = document if isinstance(document, dict) else {}
        self._compressor = compressor or NameCompressor(
            disable_abbreviation=disable_abbreviation
        )
        self._strict = strict
        self._diagnostics: List[CompileDiagnostic] = []
        self._current = ""
        self._inliner = SchemaInliner(
            pg(self._document, "components.schemas", {}),
            on_degrade=self._on_degrade,
        )

    @property
    def diagnostics(self) -> List[CompileDiagnostic]:
        return list(self._diagnostics)

    def compile(self) -> ToolRegistry:
        tools: Dict[str, ToolDefinition] = {}
        names: Dict[str, str] = {}

        for path, method, path_item, operation in self._iter_operations():
            self._current = f"{method} {path}"
            tool = self._build_tool(path, method, path_item, operation)

            if tool.tool_id in tools:
                first = tools[tool.tool_id]
                if self._strict:
                    raise ToolNameCollisionError(
                        "tool id",
                        tool.tool_id,
                        f"{first.http_method} {first.original_path}",
                        self._current,
                    )
                self._diagnose(
                    DiagnosticKind.TOOL_ID_COLLISION,
                    f"tool id {tool.tool_id} already used by "
                    f"{first.http_method} {first.original_path}; skipped",
                )
                continue

            if tool.name in names:
                if self._strict:
                    raise ToolNameCollisionError(
                        "tool name", tool.name, names[tool.name], tool.tool_id
                    )
                unique = self._unique_name(tool.name, names)
                self._diagnose(
                    DiagnosticKind.TOOL_NAME_COLLISION,
                    f"tool name {tool.name} already used by "
                    f"{names[tool.name]}; renamed to {unique}",
                )
                tool = tool.model_copy(update={"name": unique})

            names[tool.name] = tool.tool_id
            tools[tool.tool_id] = tool
            logger.debug("registered tool %s (%s)", tool.tool_id, tool.name)

        self._current = ""
        return ToolRegistry(tools, diagnostics=self._diagnostics)

    def _iter_operations(
        self,
    ) -> Iterator[Tuple[str, str, Dict[str, Any], Dict[str, Any]]]:
        paths = self._document.get("paths") or {}
        if not isinstance(paths, dict):
            return
        for path, path_item in paths.items():
            if not isinstance(path_item, dict):
                continue
            for method, operation in path_item.items():
                if method.upper() not in SUPPORTED_METHODS:
                    continue
                if not isinstance(operation, dict):
                    continue
                yield path, method.upper(), path_item, operation

    def _build_tool(
        self,
        path: str,
        method: str,
        path_item: Dict[str, Any],
        operation: Dict[str, Any],
    ) -> ToolDefinition:
        properties: Dict[str, Any] = {}
        required: List[str] = []

        parameters = self._merge_parameters(
            path_item.get("parameters"), operation.get("parameters")
        )
        for param in parameters:
            properties[param.name] = self._parameter_property(param)
            if param.required or param.location == ParameterLocation.PATH:
                required.append(param.name)

        body_wrapped = False
        media_type, body_schema = self._request_body(operation)
        if body_schema is not None:
            body_wrapped = self._add_body(body_schema, properties, required)

        input_schema: Dict[str, Any] = {
            "type": "object",
            "properties": properties,
        }
        if required:
            input_schema["required"] = list(dict.fromkeys(required))

        operation_id = self._text_field(operation, "operationId")
        summary = self._text_field(operation, "summary")
        description = self._text_field(operation, "description")

        return ToolDefinition(
            tool_id=encode_tool_id(method, path),
            name=self._compressor.compress(
                operation_id or summary or f"{method} {path}"
            ),
            description=(
                description or summary or f"Make a {method} request to {path}"
            ),
            input_schema=deepcopy(input_schema),
            original_path=path,
            http_method=method,
            tags=self._tags(operation.get("tags")),
            resource_name=extract_resource_name(path),
            body_wrapped=body_wrapped,
            body_media_type=media_type,
            server_url=pick_server_url(
                operation.get("servers"),
                path_item.get("servers"),
                self._document.get("servers"),
            ),
        )

    def _text_field(self, operation: Dict[str, Any], key: str) -> Optional[str]:
        value = operation.get(key)
        if value is None or isinstance(value, str):
            return value or None
        if isinstance(value, (int, float)) and not isinstance(value, bool):
            return str(value)
        self._diagnose(
            DiagnosticKind.INVALID_FIELD,
            f"{key} is a {type(value).__name__}, not a string; ignored",
        )
        return None

    def _tags(self, raw: Any) -> List[str]:
        if isinstance(raw, str):
            raw = [raw]
        elif not isinstance(raw, list):
            if raw is not None:
                self._diagnose(
                    DiagnosticKind.INVALID_FIELD,
                    "tags is not a list; ignored",
                )
            return []
        return list(
            dict.fromkeys(
                str(tag) for tag in raw if isinstance(tag, (str, int, float))
            )
        )

    def _merge_parameters(
        self, path_level: Any, operation_level: Any
    ) -> List[ParameterSpec]:
        merged: Dict[str, ParameterSpec] = {}
        # 操作级参数覆盖路径级同名同位置参数
        for raw_list in (path_level, operation_level):
            if raw_list is None:
                continue
            if not isinstance(raw_list, list):
                self._diagnose(
                    DiagnosticKind.INVALID_PARAMETER,
                    "parameters is not a list; ignored",
                )
                continue
            for raw in raw_list:
                param = self._resolve_parameter(raw)
                if param is not None:
                    merged[param.key] = param
        return list(merged.values())

    def _resolve_parameter(
        self, raw: Any, seen: Tuple[str, ...] = ()
    ) -> Optional[ParameterSpec]:
        if isinstance(raw, dict) and "$ref" in raw:
            ref = raw["$ref"]
            target = self._component("parameters", ref)
            if target is None or ref in seen:
                self._diagnose(
                    DiagnosticKind.INVALID_PARAMETER,
                    f"unresolvable parameter reference {ref}; skipped",
                )
                return None
            return self._resolve_parameter(target, seen + (ref,))

        if not isinstance(raw, dict):
            self._diagnose(
                DiagnosticKind.INVALID_PARAMETER,
                f"parameter is not an object: {raw!r}; skipped",
            )
            return None

        name = raw.get("name")
        location = ParameterLocation.parse(raw.get("in"))
        if not name or location is None or location == ParameterLocation.BODY:
            self._diagnose(
                DiagnosticKind.INVALID_PARAMETER,
                f"parameter needs a name and a valid 'in': {raw!r}; skipped",
            )
            return None

        schema = raw.get("schema")
        if schema is None and isinstance(raw.get("content"), dict):
            for media in raw["content"].values():
                if isinstance(media, dict) and "schema" in media:
                    schema = media["schema"]
                    break

        return ParameterSpec(
            name=str(name),
            location=location,
            required=bool(raw.get("required", False)),
            description=raw.get("description"),
            schema_=schema if isinstance(schema, dict) else {},
        )

    def _parameter_property(self, param: ParameterSpec) -> Dict[str, Any]:
        prop = self._inliner.inline(param.schema_)
        if not any(key in prop for key in _COMPOSITION_KEYS):
            prop["type"] = "string"
        prop["description"] = (
            param.description
            or prop.get("description")
            or f"{param.name} parameter"
        )
        prop[LOCATION_KEY] = param.location.value
        return prop

    def _request_body(
        self, operation: Dict[str, Any]
    ) -> Tuple[Optional[str], Optional[Dict[str, Any]]]:
        body = operation.get("requestBody")
        if isinstance(body, dict) and "$ref" in body:
            body = self._component("requestBodies", body["$ref"])
            if body is None:
                self._diagnose(
                    DiagnosticKind.SCHEMA_RESOLUTION,
                    f"unresolvable request body {operation['requestBody']}",
                )
        content = pg(body, "content") if isinstance(body, dict) else None
        if not isinstance(content, dict) or not content:
            return None, None

        media_types = [
            m
            for m, v in content.items()
            if isinstance(v, dict) and isinstance(v.get("schema"), dict)
        ]
        if not media_types:
            return None, None

        def rank(media_type: str) -> int:
            lowered = media_type.lower()
            if lowered == JSON_MEDIA_TYPE:
                return 0
            if lowered.endswith("+json"):
                return 1
            if lowered == FORM_MEDIA_TYPE:
                return 2
            return 3

        chosen = sorted(media_types, key=rank)[0]
        return chosen, content[chosen]["schema"]

    def _add_body(
        self,
        schema: Dict[str, Any],
        properties: Dict[str, Any],
        required: List[str],
    ) -> bool:
        """把请求体并入输入 schema,返回是否包装成单个 body 属性"""
        inlined = self._inliner.inline(schema)
        body_props = inlined.get("properties")
        is_object = (
            inlined.get("type", "object") == "object"
            and isinstance(body_props, dict)
            and bool(body_props)
            and not any(k in inlined for k in ("oneOf", "anyOf"))
        )

        if not is_object:
            target = self._free_name("body", properties)
            prop = dict(inlined)
            prop[LOCATION_KEY] = ParameterLocation.BODY.value
            properties[target] = prop
            required.append(target)
            return True

        body_required = inlined.get("required") or []
        for prop_name, prop_schema in body_props.items():
            target = self._free_name(prop_name, properties)
            prop = dict(prop_schema) if isinstance(prop_schema, dict) else {}
            prop[LOCATION_KEY] = ParameterLocation.BODY.value
            if target != prop_name:
                prop[ORIGINAL_NAME_KEY] = prop_name
            properties[target] = prop
            if prop_name in body_required:
                required.append(target)
        return False

    @staticmethod
    def _free_name(name: str, properties: Dict[str, Any]) -> str:
        """与已有参数重名时加 ``body_`` 前缀 / Prefix clashing body names"""
        while name in properties:
            name = f"body_{name}"
        return name

    def _component(self, section: str, ref: Any) -> Optional[Dict[str, Any]]:
        prefix = f"#/components/{section}/"
        if not isinstance(ref, str) or not ref.startswith(prefix):
            return None
        name = unescape_pointer(ref[len(prefix) :])
        target = pg(self._document, ["components", section, name])
        return target if isinstance(target, dict) else None

    def _unique_name(self, name: str, names: Dict[str, str]) -> str:
        index = 2
        candidate = with_suffix(name, str(index), MAX_TOOL_NAME_LEN)
        while candidate in names:
            index += 1
            candidate = with_suffix(name, str(index), MAX_TOOL_NAME_LEN)
        return candidate

    def _on_degrade(self, ref: str, reason: str) -> None:
        self._diagnose(
            DiagnosticKind.SCHEMA_RESOLUTION,
            f"{ref}: {reason}; replaced with an empty schema",
            log=False,
        )

    def _diagnose(
        self, kind: DiagnosticKind, message: str, log: bool = True
    ) -> None:
        diagnostic = CompileDiagnostic(
            kind=kind, location=self._current, message=message
        )
        self._diagnostics.append(diagnostic)
        if log:
            logger.warning("%s [%s]: %s", kind.value, self._current, message)


def compile_openapi(
    document: Dict[str, Any],
    disable_abbreviation: bool = False,
    strict: bool = False,
    compressor: Optional[NameCompressor] = None,
) -> ToolRegistry:
    """编译 OpenAPI 文档 / Compile an OpenAPI document into a registry"""
    return OpenAPICompiler(
        document,
        compressor=compressor,
        disable_abbreviation=disable_abbreviation,
        strict=strict,
    ).compile()

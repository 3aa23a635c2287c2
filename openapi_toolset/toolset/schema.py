"""Schema 展开 / Schema Dereferencing

将 ``$ref`` 和组合关键字展开成自包含的 schema 树。
Resolves ``$ref`` pointers and composition keywords into self-contained
schema trees.

The walk never raises. A reference that cannot be resolved, or that would
close a cycle, becomes an empty schema ``{}``. Cycle state is an immutable
``frozenset`` handed down each branch, so sibling branches never see each
other's visited names.
"""

from typing import Any, Callable, Dict, FrozenSet, List, Mapping, Optional

from openapi_toolset.utils.log import logger

COMPONENT_SCHEMA_PREFIX = "#/components/schemas/"

DegradeCallback = Callable[[str, str], None]


def unescape_pointer(token: str) -> str:
    """JSON Pointer 转义还原 / Undo JSON-pointer escaping"""
    return token.replace("~1", "/").replace("~0", "~")


def component_name(ref: Any) -> Optional[str]:
    """从 ``#/components/schemas/<name>`` 中取出 name,其他形式返回 None"""
    if not isinstance(ref, str) or not ref.startswith(COMPONENT_SCHEMA_PREFIX):
        return None
    name = ref[len(COMPONENT_SCHEMA_PREFIX) :]
    if not name or "/" in name:
        return None
    return unescape_pointer(name)


class SchemaInliner:
    """Schema 展开器 / Schema dereferencer

    Args:
        components: ``components.schemas`` 映射 / The component schema map
        on_degrade: 引用无法解析时的回调 ``(ref, reason)``
            Called with ``(ref, reason)`` whenever a reference degrades
    """

    def __init__(
        self,
        components: Optional[Mapping[str, Any]] = None,
        on_degrade: Optional[DegradeCallback] = None,
    ):
        self._components = components if isinstance(components, Mapping) else {}
        self._on_degrade = on_degrade

    def inline(
        self, schema: Any, visited: FrozenSet[str] = frozenset()
    ) -> Dict[str, Any]:
        if not isinstance(schema, dict):
            return {}

        if "$ref" in schema:
            return self._inline_ref(schema, visited)

        if "allOf" in schema:
            return self._merge_all_of(schema, visited)

        result = dict(schema)
        for keyword in ("oneOf", "anyOf"):
            if keyword in result:
                branches = result[keyword]
                if isinstance(branches, list):
                    result[keyword] = [
                        self.inline(branch, visited) for branch in branches
                    ]
                else:
                    result[keyword] = []
        if "not" in result:
            result["not"] = self.inline(result["not"], visited)

        properties = result.get("properties")
        if isinstance(properties, dict):
            # 每个属性使用独立的 visited / each property walks its own branch
            result["properties"] = {
                name: self.inline(prop, frozenset(visited))
                for name, prop in properties.items()
            }

        if "items" in result and isinstance(result["items"], dict):
            result["items"] = self.inline(result["items"], visited)

        extra = result.get("additionalProperties")
        if isinstance(extra, dict):
            result["additionalProperties"] = self.inline(extra, visited)

        return result

    def _inline_ref(
        self, schema: Dict[str, Any], visited: FrozenSet[str]
    ) -> Dict[str, Any]:
        ref = schema["$ref"]
        name = component_name(ref)
        if name is None:
            self._degrade(ref, "unsupported reference")
            return {}
        if name in visited:
            logger.debug("cyclic reference %s resolved to empty schema", ref)
            return {}
        target = self._components.get(name)
        if not isinstance(target, dict):
            self._degrade(ref, "component schema not found")
            return {}

        resolved = dict(target)
        # 同级字段覆盖引用目标 / sibling keys override the referenced schema
        for key, value in schema.items():
            if key != "$ref":
                resolved[key] = value
        return self.inline(resolved, visited | {name})

    def _merge_all_of(
        self, schema: Dict[str, Any], visited: FrozenSet[str]
    ) -> Dict[str, Any]:
        own = {k: v for k, v in schema.items() if k != "allOf"}
        branches = schema.get("allOf")
        if not isinstance(branches, list):
            branches = []

        parts = [self.inline(own, visited)] if own else []
        merged: Dict[str, Any] = {
            k: v
            for k, v in (parts[0] if parts else {}).items()
            if k not in ("type", "properties", "required")
        }
        merged["type"] = "object"
        properties: Dict[str, Any] = {}
        required: List[str] = []

        parts.extend(self.inline(branch, visited) for branch in branches)
        for part in parts:
            for name, prop in (part.get("properties") or {}).items():
                properties.setdefault(name, prop)
            for name in part.get("required") or []:
                if name not in required:
                    required.append(name)
            for key in ("description", "title"):
                if key in part and key not in merged:
                    merged[key] = part[key]

        merged["properties"] = properties
        if required:
            merged["required"] = required
        return merged

    def _degrade(self, ref: Any, reason: str) -> None:
        logger.warning("could not resolve schema reference %s: %s", ref, reason)
        if self._on_degrade is not None:
            self._on_degrade(str(ref), reason)


def inline_schema(
    schema: Any,
    components: Optional[Mapping[str, Any]] = None,
    visited: Optional[FrozenSet[str]] = None,
    on_degrade: Optional[DegradeCallback] = None,
) -> Dict[str, Any]:
    """展开单个 schema / Dereference one schema

    Examples:
        >>> inline_schema(
        ...     {"$ref": "#/components/schemas/Id"},
        ...     {"Id": {"type": "string"}},
        ... )
        {'type': 'string'}
    """
    return SchemaInliner(components, on_degrade).inline(
        schema, frozenset(visited or ())
    )

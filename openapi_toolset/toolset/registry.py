"""工具注册表 / Tool Registry

Read-only mapping from tool id to ``ToolDefinition``. Built once from one
document; a spec reload builds a new registry instead of mutating this one,
so concurrent invocations can read it without locking.
"""

from types import MappingProxyType
from typing import (
    Dict,
    Iterable,
    Iterator,
    List,
    Mapping,
    Optional,
    Sequence,
    Tuple,
)

from openapi_toolset.utils.log import logger

from .model import CompileDiagnostic, ToolDefinition


def _lowered(values: Optional[Iterable[str]]) -> List[str]:
    return [v.lower() for v in values or [] if v]


class ToolRegistry(Mapping[str, ToolDefinition]):
    """只读的工具注册表 / Read-only tool registry"""

    def __init__(
        self,
        tools: Mapping[str, ToolDefinition],
        diagnostics: Optional[Sequence[CompileDiagnostic]] = None,
    ):
        self._tools = MappingProxyType(dict(tools))
        self._diagnostics: Tuple[CompileDiagnostic, ...] = tuple(
            diagnostics or ()
        )

    def __getitem__(self, tool_id: str) -> ToolDefinition:
        return self._tools[tool_id]

    def __iter__(self) -> Iterator[str]:
        return iter(self._tools)

    def __len__(self) -> int:
        return len(self._tools)

    def __repr__(self) -> str:
        return f"ToolRegistry({list(self._tools)})"

    @property
    def diagnostics(self) -> Tuple[CompileDiagnostic, ...]:
        return self._diagnostics

    def tools(self) -> List[ToolDefinition]:
        """返回所有工具列表"""
        return list(self._tools.values())

    def find(self, id_or_name: str) -> Optional[ToolDefinition]:
        """按工具标识或名称查找,均不区分大小写

        Ids are tried before names.
        """
        if not id_or_name:
            return None
        if id_or_name in self._tools:
            return self._tools[id_or_name]

        wanted = id_or_name.lower()
        for tool_id, tool in self._tools.items():
            if tool_id.lower() == wanted:
                return tool
        for tool in self._tools.values():
            if tool.name.lower() == wanted:
                return tool
        return None

    def filtered(
        self,
        include_tools: Optional[Iterable[str]] = None,
        include_operations: Optional[Iterable[str]] = None,
        include_resources: Optional[Iterable[str]] = None,
        include_tags: Optional[Iterable[str]] = None,
    ) -> "ToolRegistry":
        """按条件筛选出新的注册表 / Build a narrowed registry

        Every filter is case-insensitive and only applies when non-empty:
        ``include_tools`` matches tool ids or names, ``include_operations``
        HTTP methods, ``include_resources`` resource names and
        ``include_tags`` any of the tool's tags.
        """
        tools_filter = _lowered(include_tools)
        operations_filter = _lowered(include_operations)
        resources_filter = _lowered(include_resources)
        tags_filter = _lowered(include_tags)

        kept: Dict[str, ToolDefinition] = {}
        for tool_id, tool in self._tools.items():
            if tools_filter and (
                tool_id.lower() not in tools_filter
                and tool.name.lower() not in tools_filter
            ):
                continue
            if (
                operations_filter
                and tool.http_method.lower() not in operations_filter
            ):
                continue
            if resources_filter and (
                not tool.resource_name
                or tool.resource_name.lower() not in resources_filter
            ):
                continue
            if tags_filter and not any(
                tag.lower() in tags_filter for tag in tool.tags
            ):
                continue
            kept[tool_id] = tool

        if len(kept) != len(self._tools):
            logger.debug(
                "filters kept %d of %d tools", len(kept), len(self._tools)
            )
        return ToolRegistry(kept, diagnostics=self._diagnostics)

"""工具标识编解码 / Tool Identifier Codec

Tool ids have the form ``METHOD::encodedPath``. Path separators become
``__``, path parameters ``{name}`` become ``---name`` and every character
outside ``[A-Za-z0-9_.-]`` is dropped.

The codec canonicalizes: ``decode(encode(m, p))`` returns the canonical form
of ``p`` (parameter braces replaced by the marker, repeated separators
collapsed, disallowed characters removed), not necessarily ``p`` itself.
Two different paths that canonicalize to the same string share one id; the
compiler reports that as a collision. A literal segment that itself starts
with ``---`` cannot be told apart from a parameter marker.

Runs of underscores inside a segment collapse to one and segments never
start or end with an underscore, so ``__`` only ever appears as a separator.

Examples:
    >>> encode_tool_id("get", "/users/{id}")
    'GET::users__---id'
    >>> decode_tool_id("GET::users__---id")
    DecodedToolId(method='GET', path='/users/---id')
"""

import re
from typing import NamedTuple

from openapi_toolset.utils.exception import ValidationError

ID_SEPARATOR = "::"
SEGMENT_SEPARATOR = "__"
PARAM_MARKER = "---"

_PARAM_RE = re.compile(r"\{([^}]*)\}")
_SLASHES_RE = re.compile(r"/+")
_DISALLOWED_RE = re.compile(r"[^A-Za-z0-9_.\-]")
_UNDERSCORES_RE = re.compile(r"_{2,}")
_HYPHENS_RE = re.compile(r"-{4,}")


class DecodedToolId(NamedTuple):
    method: str
    path: str


def _clean_segment(segment: str) -> str:
    segment = _PARAM_RE.sub(lambda m: PARAM_MARKER + m.group(1), segment)
    segment = _DISALLOWED_RE.sub("", segment)
    segment = _UNDERSCORES_RE.sub("_", segment).strip("_")
    # 4 个以上连字符折叠成 3 个 / bound hyphen runs left by removed characters
    return _HYPHENS_RE.sub(PARAM_MARKER, segment)


def encode_path(path: str) -> str:
    """编码路径部分 / Encode the path part of a tool id"""
    raw_segments = [s for s in _SLASHES_RE.split(path or "") if s]
    segments = []
    for raw in raw_segments:
        cleaned = _clean_segment(raw)
        if cleaned:
            segments.append((raw, cleaned))

    if not segments:
        return ""

    first_raw, first = segments[0]
    if not first_raw.startswith("{"):
        first = first.lstrip("-_")
    segments[0] = (first_raw, first)

    last_raw, last = segments[-1]
    segments[-1] = (last_raw, last.rstrip("-_"))

    return SEGMENT_SEPARATOR.join(cleaned for _, cleaned in segments if cleaned)


def encode_tool_id(method: str, path: str) -> str:
    """由 HTTP 方法和路径模板生成工具标识 / Build a tool id"""
    return f"{(method or '').upper()}{ID_SEPARATOR}{encode_path(path)}"


def decode_tool_id(tool_id: str) -> DecodedToolId:
    """解析工具标识 / Split a tool id into method and canonical path

    Only the first ``::`` separates the method; any later ``::`` is part of
    the path.

    Raises:
        ValidationError: 工具标识中没有 ``::`` / the id has no ``::``
    """
    method, sep, encoded = (tool_id or "").partition(ID_SEPARATOR)
    if not sep or not method:
        raise ValidationError(f"Invalid tool id '{tool_id}'", tool_id=tool_id)
    return DecodedToolId(
        method=method, path="/" + encoded.replace(SEGMENT_SEPARATOR, "/")
    )


def canonical_path(path: str) -> str:
    """路径的规范形式 / Canonical form of a path template"""
    return "/" + encode_path(path).replace(SEGMENT_SEPARATOR, "/")

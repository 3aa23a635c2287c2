"""工具名压缩 / Tool Name Compression

Turns verbose operation names (``operationId``, summaries, ``METHOD /path``)
into short names matching ``^[a-z0-9]+(-[a-z0-9]+)*$`` of at most 64 chars.

Pipeline: sanitize, segment into words, drop stop words, abbreviate,
strip vowels from long words when still too long, truncate with a content
hash suffix, final sanitize. Every stage is deterministic.
"""

import hashlib
import re
from types import MappingProxyType
from typing import Any, Iterable, List, Mapping, Optional

from openapi_toolset.toolset.abbreviations import STOP_WORDS, WORD_ABBREVIATIONS

MAX_TOOL_NAME_LEN = 64
UNNAMED_TOOL = "unnamed-tool"
NAME_PATTERN = re.compile(r"^[a-z0-9]+(-[a-z0-9]+)*$")

_NON_WORD_RE = re.compile(r"[^A-Za-z0-9_]+")
_HYPHENS_RE = re.compile(r"-+")
_SPLIT_RE = re.compile(r"[-_]+")
# 驼峰、大写缩写以及字母/数字边界 / camel case, acronyms, letter-digit edges
_WORD_RE = re.compile(r"[A-Z]+(?=[A-Z][a-z])|[A-Z]?[a-z]+|[A-Z]+|[0-9]+")
# 不缩写时数字跟随前面的单词 / digits stay attached when not abbreviating
_LITERAL_WORD_RE = re.compile(
    r"[A-Z]+[0-9]*(?=[A-Z][a-z])|[A-Z]?[a-z]+[0-9]*|[A-Z]+[0-9]*|[0-9]+[a-z]*"
)
_VOWELS_RE = re.compile(r"[aeiouAEIOU]")
_OUTPUT_DISALLOWED_RE = re.compile(r"[^a-z0-9-]")


def short_hash(text: str, length: int = 4) -> str:
    return hashlib.sha256(text.encode("utf-8")).hexdigest()[:length]


def fallback_name(raw_name: str) -> str:
    return "tool-" + short_hash(raw_name, 8)


def with_suffix(
    name: str, suffix: str, max_length: int = MAX_TOOL_NAME_LEN
) -> str:
    """给名称追加后缀且不超长 / Append ``-suffix`` within the length limit"""
    tail = f"-{suffix}"
    base = name[: max(max_length - len(tail), 0)].rstrip("-")
    return f"{base}{tail}" if base else suffix[:max_length]


class NameCompressor:
    """工具名压缩器 / Tool name compressor

    Args:
        abbreviations: 单词到缩写的只读映射 / Word to short form lookup
        stop_words: 需要去掉的样板词 / Boilerplate words to drop
        max_length: 名称最大长度 / Maximum name length
        disable_abbreviation: 只做清洗和分词,保留完整单词
            Only sanitize, segment and rejoin; keep every word
    """

    def __init__(
        self,
        abbreviations: Mapping[str, str] = WORD_ABBREVIATIONS,
        stop_words: Iterable[str] = STOP_WORDS,
        max_length: int = MAX_TOOL_NAME_LEN,
        disable_abbreviation: bool = False,
    ):
        self._abbreviations = MappingProxyType(
            {k.lower(): v for k, v in abbreviations.items()}
        )
        self._short_forms = frozenset(
            v.lower() for v in self._abbreviations.values()
        )
        self._stop_words = frozenset(w.lower() for w in stop_words)
        self._max_length = max_length
        self._disable_abbreviation = disable_abbreviation

    @property
    def disable_abbreviation(self) -> bool:
        return self._disable_abbreviation

    def compress(self, raw_name: Any, max_length: Optional[int] = None) -> str:
        max_length = max_length or self._max_length
        if raw_name is not None and not isinstance(raw_name, str):
            raw_name = str(raw_name)
        if not raw_name or not raw_name.strip():
            return UNNAMED_TOOL

        sanitized = _HYPHENS_RE.sub(
            "-", _NON_WORD_RE.sub("-", raw_name)
        ).strip("-")
        if not sanitized:
            return fallback_name(raw_name)

        tokens = self.segment(sanitized)
        if self._disable_abbreviation:
            return self._finalize("-".join(tokens), raw_name, max_length)

        tokens = self._drop_stop_words(tokens)
        tokens = [self._abbreviate(token) for token in tokens]
        name = "-".join(tokens)

        if len(name) > max_length:
            name = "-".join(self._strip_vowels(token) for token in tokens)

        if len(raw_name) > max_length or len(name) > max_length:
            digest = short_hash(raw_name, 4)
            available = max(max_length - len(digest) - 1, 0)
            base = name[:available].rstrip("-")
            name = f"{base}-{digest}" if base else digest

        return self._finalize(name, raw_name, max_length)

    def segment(self, sanitized: str) -> List[str]:
        """拆分单词 / Split a sanitized name into words"""
        pattern = _LITERAL_WORD_RE if self._disable_abbreviation else _WORD_RE
        tokens: List[str] = []
        for chunk in _SPLIT_RE.split(sanitized):
            tokens.extend(pattern.findall(chunk))
        return tokens

    def _drop_stop_words(self, tokens: List[str]) -> List[str]:
        kept = [t for t in tokens if t.lower() not in self._stop_words]
        return kept or tokens

    def _abbreviate(self, token: str) -> str:
        short = self._abbreviations.get(token.lower())
        if not short:
            return token
        if len(token) > 1 and token.isupper():
            return short.upper()
        if token[0].isupper():
            return short[0].upper() + short[1:].lower()
        return short.lower()

    def _strip_vowels(self, token: str) -> str:
        if len(token) <= 5 or token.lower() in self._short_forms:
            return token
        stripped = token[0] + _VOWELS_RE.sub("", token[1:])
        if 1 < len(stripped) < len(token):
            return stripped
        return token

    def _finalize(self, name: str, raw_name: str, max_length: int) -> str:
        name = _OUTPUT_DISALLOWED_RE.sub("-", name.lower())
        name = _HYPHENS_RE.sub("-", name).strip("-")
        if len(name) > max_length:
            name = name[:max_length].rstrip("-")
        return name or fallback_name(raw_name)


_default_compressor = NameCompressor()


def compress_name(
    raw_name: Any,
    max_length: int = MAX_TOOL_NAME_LEN,
    disable_abbreviation: bool = False,
) -> str:
    """使用默认词表压缩工具名 / Compress with the default word tables

    Examples:
        >>> compress_name("getUsers")
        'get-usrs'
        >>> compress_name("getUsers", disable_abbreviation=True)
        'get-users'
    """
    if disable_abbreviation:
        return NameCompressor(
            max_length=max_length, disable_abbreviation=True
        ).compress(raw_name)
    return _default_compressor.compress(raw_name, max_length)

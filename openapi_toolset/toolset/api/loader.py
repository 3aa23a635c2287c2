"""OpenAPI 文档加载 / OpenAPI Document Loading

从 URL、文件、标准输入或内联字符串读取 OpenAPI 文档,依次尝试 JSON 和 YAML。
Reads an OpenAPI document from a URL, a file, standard input or an inline
string, parsing it as JSON first and YAML second.
"""

import json
from pathlib import Path
import sys
from typing import Any, Dict, Optional, TextIO, Union

import httpx
import yaml

from openapi_toolset.utils.exception import SpecLoadError
from openapi_toolset.utils.log import logger

SPEC_METHODS = ("auto", "url", "file", "stdin", "inline")


def parse_spec_text(
    text: Union[str, bytes], method: str, locator: str
) -> Dict[str, Any]:
    """解析文档文本 / Parse document text as JSON, then YAML"""
    if isinstance(text, (bytes, bytearray)):
        try:
            text = text.decode("utf-8")
        except UnicodeDecodeError as e:
            raise SpecLoadError(method, locator, f"not valid UTF-8: {e}") from e

    if not text or not text.strip():
        raise SpecLoadError(method, locator, "document is empty")

    try:
        document = json.loads(text)
    except json.JSONDecodeError as json_error:
        try:
            document = yaml.safe_load(text)
        except yaml.YAMLError as yaml_error:
            raise SpecLoadError(
                method,
                locator,
                f"not valid JSON ({json_error}) or YAML ({yaml_error})",
            ) from yaml_error

    if not isinstance(document, dict):
        raise SpecLoadError(
            method,
            locator,
            f"expected a mapping at the top level, got {type(document).__name__}",
        )
    return document


async def load_spec(
    locator: Union[str, Dict[str, Any], None],
    method: str = "auto",
    inline_content: Optional[str] = None,
    stdin: Optional[TextIO] = None,
    timeout: float = 30,
) -> Dict[str, Any]:
    """加载 OpenAPI 文档 / Load an OpenAPI document

    Args:
        locator: URL、文件路径或已解析的字典 / URL, file path or parsed dict
        method: auto/url/file/stdin/inline
        inline_content: method 为 inline 时的文档内容 / Content for ``inline``
        stdin: 读取的流,默认 ``sys.stdin`` / Stream read for ``stdin``
        timeout: URL 请求超时时间(秒) / URL fetch timeout in seconds

    Returns:
        Dict[str, Any]: 解析后的文档 / The parsed document

    Raises:
        SpecLoadError: 文档无法获取或解析 / The document is unavailable or invalid
    """
    if isinstance(locator, dict):
        return locator

    method = (method or "auto").lower()
    if method not in SPEC_METHODS:
        raise SpecLoadError(method, str(locator), "unsupported input method")

    locator = locator or ""
    if method == "auto":
        if locator.startswith(("http://", "https://")):
            method = "url"
        elif inline_content is not None and not locator:
            method = "inline"
        else:
            method = "file"

    if method == "inline":
        if inline_content is None:
            raise SpecLoadError(method, "<inline>", "no inline content given")
        return parse_spec_text(inline_content, method, "<inline>")

    if method == "stdin":
        stream = stdin or sys.stdin
        return parse_spec_text(stream.read(), method, "<stdin>")

    if not locator:
        raise SpecLoadError(method, "", "no spec location given")

    if method == "url":
        logger.debug("fetching OpenAPI spec from %s", locator)
        try:
            async with httpx.AsyncClient(timeout=timeout) as client:
                response = await client.get(locator)
                response.raise_for_status()
        except httpx.HTTPStatusError as e:
            raise SpecLoadError(
                method, locator, f"HTTP {e.response.status_code}"
            ) from e
        except httpx.HTTPError as e:
            raise SpecLoadError(method, locator, str(e) or repr(e)) from e
        return parse_spec_text(response.text, method, locator)

    try:
        text = Path(locator).read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        raise SpecLoadError(method, locator, str(e)) from e
    return parse_spec_text(text, method, locator)

"""工具名压缩单元测试"""

import pytest

from openapi_toolset.toolset.naming import (
    compress_name,
    fallback_name,
    MAX_TOOL_NAME_LEN,
    NAME_PATTERN,
    NameCompressor,
    short_hash,
    UNNAMED_TOOL,
    with_suffix,
)


class TestCompressName:
    """测试默认词表下的压缩"""

    def test_get_users(self):
        assert compress_name("getUsers") == "get-usrs"

    def test_method_and_path(self):
        assert compress_name("GET /users/{id}") == "get-usrs-id"

    def test_stop_words_removed(self):
        assert compress_name("getUserController") == "get-usr"

    def test_only_stop_words_kept(self):
        """全部是停用词时不删除"""
        assert compress_name("ApiService") == "api-service"

    def test_letter_digit_boundary(self):
        assert compress_name("getV2Users") == "get-v-2-usrs"

    def test_strip_vowels_when_too_long(self):
        """超长时去掉长单词中的元音"""
        raw = "ShippingEstimateWarehouseFulfillment"
        assert (
            compress_name(raw, max_length=38) == "shppng-estmt-wrhs-flfllmnt"
        )

    def test_long_raw_name_gets_hash(self):
        """原始名称超长时即使压缩后足够短也追加哈希"""
        raw = "getUsers" + "_" * 60
        assert compress_name(raw) == "get-usrs-" + short_hash(raw)

    def test_empty_name(self):
        assert compress_name("") == UNNAMED_TOOL
        assert compress_name("   ") == UNNAMED_TOOL

    def test_non_string_name(self):
        assert compress_name(12345) == "12345"
        assert compress_name(None) == UNNAMED_TOOL

    def test_no_usable_characters(self):
        assert compress_name("!!!") == fallback_name("!!!")
        assert compress_name("!!!").startswith("tool-")
        assert len(compress_name("!!!")) == len("tool-") + 8


class TestCompressorBounds:
    """测试长度上限与字符集"""

    @pytest.mark.parametrize(
        "raw",
        [
            "getUsers",
            "GET /v1/organizations/{orgId}/projects/{projectId}/members",
            "x" * 200,
            "__init__",
            "Ünïcödé naming with spaces & symbols!!",
            "HTTPServerErrorHandlerForXMLRequests",
            "a-b_c.d/e",
            "123",
            "ListAllTheThingsUsingTheApiServiceControllerEndpointHandler" * 3,
        ],
    )
    def test_bounds(self, raw):
        name = compress_name(raw)
        assert len(name) <= MAX_TOOL_NAME_LEN
        assert NAME_PATTERN.match(name)

    @pytest.mark.parametrize("max_length", [8, 16, 24])
    def test_custom_max_length(self, max_length):
        raw = "createOrganizationProjectEnvironmentVariable"
        name = compress_name(raw, max_length=max_length)
        assert len(name) <= max_length
        assert NAME_PATTERN.match(name)


class TestHashDisambiguation:
    """测试超长名称的哈希区分"""

    @pytest.mark.parametrize(
        "first,second",
        [
            (
                "fetch" + "Inventory" * 10 + "Alpha",
                "fetch" + "Inventory" * 10 + "Beta",
            ),
            (
                "list" + "CustomerAccountTransactions" * 4 + "V1",
                "list" + "CustomerAccountTransactions" * 4 + "V2",
            ),
        ],
    )
    def test_distinct_long_names(self, first, second):
        a = compress_name(first)
        b = compress_name(second)

        assert a.endswith("-" + short_hash(first))
        assert b.endswith("-" + short_hash(second))
        # 截断后的前缀相同,只靠哈希区分
        assert a[:-4] == b[:-4]
        assert a != b
        assert len(a) <= MAX_TOOL_NAME_LEN
        assert len(b) <= MAX_TOOL_NAME_LEN

    def test_deterministic(self):
        raw = "fetch" + "Inventory" * 10
        assert compress_name(raw) == compress_name(raw)


class TestDisableAbbreviation:
    """测试关闭缩写"""

    def test_literal_words(self):
        assert compress_name("getUsers", disable_abbreviation=True) == (
            "get-users"
        )

    def test_stop_words_kept(self):
        assert (
            compress_name("getUserController", disable_abbreviation=True)
            == "get-user-controller"
        )

    def test_digits_stay_attached(self):
        assert (
            compress_name("getV2Users", disable_abbreviation=True)
            == "get-v2-users"
        )

    def test_output_alphabet_enforced(self):
        name = compress_name("x" * 100, disable_abbreviation=True)
        assert name == "x" * MAX_TOOL_NAME_LEN
        assert compress_name("", disable_abbreviation=True) == UNNAMED_TOOL
        assert compress_name("***", disable_abbreviation=True) == (
            fallback_name("***")
        )


class TestNameCompressor:
    """测试注入词表"""

    def test_injected_abbreviations(self):
        compressor = NameCompressor(abbreviations={"widget": "Wdg"})
        assert compressor.compress("listWidget") == "list-wdg"
        assert compressor.compress("getUsers") == "get-users"

    def test_injected_stop_words(self):
        compressor = NameCompressor(stop_words={"get"})
        assert compressor.compress("apiGetUsers") == "api-usrs"

    def test_case_preserved_abbreviation(self):
        compressor = NameCompressor()
        assert compressor._abbreviate("USERS") == "USRS"
        assert compressor._abbreviate("Users") == "Usrs"
        assert compressor._abbreviate("users") == "usrs"
        assert compressor._abbreviate("things") == "things"


class TestWithSuffix:
    """测试后缀追加"""

    def test_short_name(self):
        assert with_suffix("get-usrs", "2") == "get-usrs-2"

    def test_truncates_to_limit(self):
        name = "a" * MAX_TOOL_NAME_LEN
        suffixed = with_suffix(name, "3")
        assert len(suffixed) == MAX_TOOL_NAME_LEN
        assert suffixed.endswith("-3")

    def test_trailing_separator_trimmed(self):
        name = "a" * 61 + "-bc"
        suffixed = with_suffix(name, "2")
        assert suffixed == "a" * 61 + "-2"
        assert NAME_PATTERN.match(suffixed)

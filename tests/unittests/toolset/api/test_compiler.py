"""OpenAPI 编译单元测试

测试内容：
1. 操作编译成工具定义 (标识、名称、输入 schema、参数位置)
2. 参数引用、请求体展开与重名处理
3. 冲突策略与编译期诊断
"""

import pytest

from openapi_toolset.toolset.api.loader import parse_spec_text
from openapi_toolset.toolset.api.openapi import (
    compile_openapi,
    extract_resource_name,
    OpenAPICompiler,
    pick_server_url,
)
from openapi_toolset.toolset.model import (
    DiagnosticKind,
    LOCATION_KEY,
    ORIGINAL_NAME_KEY,
)
from openapi_toolset.utils.exception import ToolNameCollisionError


def document(paths, components=None, **extra):
    doc = {"openapi": "3.0.0", "paths": paths}
    if components:
        doc["components"] = components
    doc.update(extra)
    return doc


class TestScenarios:
    """测试基本编译场景"""

    def test_get_users(self):
        registry = compile_openapi(
            document({"/users": {"get": {"operationId": "getUsers"}}})
        )

        assert list(registry) == ["GET::users"]
        tool = registry["GET::users"]
        assert tool.name == "get-usrs"
        assert tool.http_method == "GET"
        assert tool.original_path == "/users"
        assert tool.input_schema == {"type": "object", "properties": {}}

    def test_path_parameter(self):
        registry = compile_openapi(
            document({
                "/users/{id}": {
                    "get": {
                        "operationId": "getUser",
                        "parameters": [{
                            "name": "id",
                            "in": "path",
                            "required": True,
                            "schema": {"type": "string"},
                        }],
                    }
                }
            })
        )

        tool = registry["GET::users__---id"]
        assert tool.input_schema["required"] == ["id"]
        assert tool.input_schema["properties"]["id"] == {
            "type": "string",
            "description": "id parameter",
            LOCATION_KEY: "path",
        }

    def test_array_body_wrapped(self):
        registry = compile_openapi(
            document({
                "/list": {
                    "post": {
                        "requestBody": {
                            "content": {
                                "application/json": {
                                    "schema": {
                                        "type": "array",
                                        "items": {"type": "number"},
                                    }
                                }
                            }
                        }
                    }
                }
            })
        )

        tool = registry["POST::list"]
        assert tool.body_wrapped is True
        assert tool.input_schema["properties"] == {
            "body": {
                "type": "array",
                "items": {"type": "number"},
                LOCATION_KEY: "body",
            }
        }
        assert tool.input_schema["required"] == ["body"]

    def test_path_parameter_required_even_if_not_declared(self):
        registry = compile_openapi(
            document({
                "/items/{itemId}": {
                    "delete": {
                        "parameters": [
                            {"name": "itemId", "in": "path"},
                            {"name": "force", "in": "query"},
                        ]
                    }
                }
            })
        )

        tool = registry["DELETE::items__---itemId"]
        assert tool.input_schema["required"] == ["itemId"]
        assert tool.location_of("force").value == "query"
        # 没有 schema 的参数默认是字符串
        assert tool.properties["force"]["type"] == "string"


class TestNamingAndMetadata:
    """测试名称、描述与元数据"""

    def test_name_from_summary(self):
        registry = compile_openapi(
            document({"/users": {"get": {"summary": "List all users"}}})
        )
        tool = registry["GET::users"]
        assert tool.name == "list-all-usrs"
        assert tool.description == "List all users"

    def test_name_from_method_and_path(self):
        registry = compile_openapi(document({"/items": {"post": {}}}))
        tool = registry["POST::items"]
        assert tool.name == "post-items"
        assert tool.description == "Make a POST request to /items"

    def test_description_preferred_over_summary(self):
        registry = compile_openapi(
            document({
                "/items": {
                    "get": {
                        "operationId": "listItems",
                        "summary": "short",
                        "description": "long description",
                    }
                }
            })
        )
        assert registry["GET::items"].description == "long description"

    def test_disable_abbreviation(self):
        registry = compile_openapi(
            document({"/users": {"get": {"operationId": "getUsers"}}}),
            disable_abbreviation=True,
        )
        assert registry["GET::users"].name == "get-users"

    def test_tags_and_resource(self):
        registry = compile_openapi(
            document({
                "/orgs/{orgId}/members/{memberId}": {
                    "get": {
                        "operationId": "getMember",
                        "tags": ["members", "orgs", "members"],
                    }
                }
            })
        )
        tool = registry.tools()[0]
        assert tool.tags == ["members", "orgs"]
        assert tool.resource_name == "members"

    def test_non_string_operation_id(self):
        spec = parse_spec_text(
            """
openapi: 3.0.0
paths:
  /orders:
    get:
      operationId: 12345
  /items:
    get:
      operationId: listItems
      summary: [not, a, string]
""",
            "inline",
            "<inline>",
        )
        registry = compile_openapi(spec)

        assert registry["GET::orders"].name == "12345"
        items = registry["GET::items"]
        assert items.name == "list-items"
        assert items.description == "Make a GET request to /items"
        assert [d.kind for d in registry.diagnostics] == [
            DiagnosticKind.INVALID_FIELD
        ]

    def test_scalar_tags(self):
        registry = compile_openapi(
            document({
                "/users": {"get": {"operationId": "getUsers", "tags": "users"}},
                "/items": {"get": {"operationId": "listItems", "tags": 7.5}},
            })
        )
        assert registry["GET::users"].tags == ["users"]
        assert registry["GET::items"].tags == []
        assert [d.kind for d in registry.diagnostics] == [
            DiagnosticKind.INVALID_FIELD
        ]

    def test_unsupported_methods_ignored(self):
        registry = compile_openapi(
            document({
                "/users": {
                    "summary": "users",
                    "parameters": [],
                    "trace": {"operationId": "traceUsers"},
                    "x-internal": {"operationId": "hidden"},
                    "get": {"operationId": "getUsers"},
                }
            })
        )
        assert list(registry) == ["GET::users"]

    def test_to_tool_info(self):
        registry = compile_openapi(
            document({"/users": {"get": {"operationId": "getUsers"}}})
        )
        info = registry["GET::users"].to_tool_info()
        assert info == {
            "name": "get-usrs",
            "description": "Make a GET request to /users",
            "inputSchema": {"type": "object", "properties": {}},
        }

    def test_server_url(self):
        registry = compile_openapi(
            document(
                {
                    "/users": {"get": {"operationId": "getUsers"}},
                    "/files": {
                        "servers": [{"url": "https://files.example.com"}],
                        "get": {"operationId": "listFiles"},
                    },
                },
                servers=[{
                    "url": "https://{region}.example.com/v1",
                    "variables": {"region": {"default": "eu"}},
                }],
            )
        )
        assert registry["GET::users"].server_url == "https://eu.example.com/v1"
        assert registry["GET::files"].server_url == (
            "https://files.example.com"
        )


class TestParameters:
    """测试参数合并与引用"""

    def test_operation_overrides_path_level(self):
        registry = compile_openapi(
            document({
                "/users": {
                    "parameters": [
                        {"name": "limit", "in": "query", "description": "a"},
                        {"name": "X-Trace", "in": "header"},
                    ],
                    "get": {
                        "operationId": "listUsers",
                        "parameters": [
                            {"name": "limit", "in": "query", "description": "b"}
                        ],
                    },
                }
            })
        )
        tool = registry["GET::users"]
        assert tool.properties["limit"]["description"] == "b"
        assert tool.location_of("X-Trace").value == "header"

    def test_parameter_reference(self):
        registry = compile_openapi(
            document(
                {
                    "/users": {
                        "get": {
                            "operationId": "listUsers",
                            "parameters": [
                                {"$ref": "#/components/parameters/Limit"},
                                {"$ref": "#/components/parameters/Session"},
                            ],
                        }
                    }
                },
                components={
                    "parameters": {
                        "Limit": {
                            "name": "limit",
                            "in": "query",
                            "required": True,
                            "schema": {"$ref": "#/components/schemas/Count"},
                        },
                        "Session": {"name": "session", "in": "cookie"},
                    },
                    "schemas": {"Count": {"type": "integer", "minimum": 1}},
                },
            )
        )
        tool = registry["GET::users"]
        assert tool.properties["limit"] == {
            "type": "integer",
            "minimum": 1,
            "description": "limit parameter",
            LOCATION_KEY: "query",
        }
        assert tool.input_schema["required"] == ["limit"]
        assert tool.location_of("session").value == "cookie"

    def test_invalid_parameters_skipped(self):
        compiler = OpenAPICompiler(
            document({
                "/users": {
                    "get": {
                        "operationId": "listUsers",
                        "parameters": [
                            {"$ref": "#/components/parameters/Missing"},
                            {"name": "nowhere"},
                            {"in": "query"},
                            {"name": "bad", "in": "matrix"},
                            "not-a-parameter",
                            {"name": "ok", "in": "query"},
                        ],
                    }
                }
            })
        )
        registry = compiler.compile()

        assert list(registry["GET::users"].properties) == ["ok"]
        kinds = [d.kind for d in registry.diagnostics]
        assert kinds == [DiagnosticKind.INVALID_PARAMETER] * 5
        assert all(d.location == "GET /users" for d in registry.diagnostics)

    def test_cyclic_parameter_reference(self):
        registry = compile_openapi(
            document(
                {
                    "/a": {
                        "get": {
                            "parameters": [
                                {"$ref": "#/components/parameters/Loop"}
                            ]
                        }
                    }
                },
                components={
                    "parameters": {
                        "Loop": {"$ref": "#/components/parameters/Loop"}
                    }
                },
            )
        )
        assert registry["GET::a"].properties == {}
        assert registry.diagnostics[0].kind == DiagnosticKind.INVALID_PARAMETER

    def test_parameter_content_schema(self):
        registry = compile_openapi(
            document({
                "/search": {
                    "get": {
                        "parameters": [{
                            "name": "filter",
                            "in": "query",
                            "content": {
                                "application/json": {
                                    "schema": {"type": "object"}
                                }
                            },
                        }]
                    }
                }
            })
        )
        assert registry["GET::search"].properties["filter"]["type"] == "object"


class TestRequestBody:
    """测试请求体展开"""

    def test_object_body_flattened(self):
        registry = compile_openapi(
            document(
                {
                    "/users": {
                        "post": {
                            "operationId": "createUser",
                            "requestBody": {
                                "content": {
                                    "application/json": {
                                        "schema": {
                                            "$ref": "#/components/schemas/User"
                                        }
                                    }
                                }
                            },
                        }
                    }
                },
                components={
                    "schemas": {
                        "User": {
                            "type": "object",
                            "properties": {
                                "name": {"type": "string"},
                                "age": {"type": "integer"},
                            },
                            "required": ["name"],
                        }
                    }
                },
            )
        )
        tool = registry["POST::users"]
        assert tool.body_wrapped is False
        assert tool.body_media_type == "application/json"
        assert tool.location_of("name").value == "body"
        assert tool.location_of("age").value == "body"
        assert tool.input_schema["required"] == ["name"]

    def test_body_name_collision_prefixed(self):
        registry = compile_openapi(
            document({
                "/users/{id}": {
                    "put": {
                        "parameters": [
                            {"name": "id", "in": "path", "required": True}
                        ],
                        "requestBody": {
                            "content": {
                                "application/json": {
                                    "schema": {
                                        "type": "object",
                                        "properties": {
                                            "id": {"type": "integer"},
                                            "name": {"type": "string"},
                                        },
                                        "required": ["id"],
                                    }
                                }
                            }
                        },
                    }
                }
            })
        )
        tool = registry["PUT::users__---id"]
        assert tool.location_of("id").value == "path"
        assert tool.location_of("body_id").value == "body"
        assert tool.properties["body_id"][ORIGINAL_NAME_KEY] == "id"
        assert tool.wire_name("body_id") == "id"
        assert tool.wire_name("name") == "name"
        assert tool.input_schema["required"] == ["id", "body_id"]

    def test_one_of_body_wrapped(self):
        registry = compile_openapi(
            document({
                "/pets": {
                    "post": {
                        "requestBody": {
                            "content": {
                                "application/json": {
                                    "schema": {
                                        "oneOf": [
                                            {"type": "string"},
                                            {"type": "integer"},
                                        ]
                                    }
                                }
                            }
                        }
                    }
                }
            })
        )
        tool = registry["POST::pets"]
        assert tool.body_wrapped is True
        assert "oneOf" in tool.properties["body"]
        assert tool.input_schema["required"] == ["body"]

    def test_wrapped_body_name_collision(self):
        registry = compile_openapi(
            document({
                "/raw": {
                    "post": {
                        "parameters": [{"name": "body", "in": "query"}],
                        "requestBody": {
                            "content": {
                                "text/plain": {"schema": {"type": "string"}}
                            }
                        },
                    }
                }
            })
        )
        tool = registry["POST::raw"]
        assert tool.location_of("body").value == "query"
        assert tool.location_of("body_body").value == "body"
        assert tool.body_media_type == "text/plain"

    def test_all_of_body_merged(self):
        registry = compile_openapi(
            document(
                {
                    "/pets": {
                        "post": {
                            "requestBody": {
                                "content": {
                                    "application/json": {
                                        "schema": {
                                            "allOf": [
                                                {
                                                    "$ref": (
                                                        "#/components/"
                                                        "schemas/Base"
                                                    )
                                                },
                                                {
                                                    "properties": {
                                                        "name": {
                                                            "type": "string"
                                                        }
                                                    },
                                                    "required": ["name"],
                                                },
                                            ]
                                        }
                                    }
                                }
                            }
                        }
                    }
                },
                components={
                    "schemas": {
                        "Base": {
                            "type": "object",
                            "properties": {"id": {"type": "string"}},
                        }
                    }
                },
            )
        )
        tool = registry["POST::pets"]
        assert set(tool.properties) == {"id", "name"}
        assert tool.input_schema["required"] == ["name"]

    def test_media_type_preference(self):
        registry = compile_openapi(
            document({
                "/login": {
                    "post": {
                        "requestBody": {
                            "content": {
                                "text/plain": {"schema": {"type": "string"}},
                                "application/x-www-form-urlencoded": {
                                    "schema": {
                                        "type": "object",
                                        "properties": {
                                            "user": {"type": "string"}
                                        },
                                    }
                                },
                                "application/vnd.api+json": {
                                    "schema": {
                                        "type": "object",
                                        "properties": {
                                            "data": {"type": "object"}
                                        },
                                    }
                                },
                            }
                        }
                    }
                }
            })
        )
        tool = registry["POST::login"]
        assert tool.body_media_type == "application/vnd.api+json"
        assert list(tool.properties) == ["data"]

    def test_unresolvable_body_degrades(self):
        registry = compile_openapi(
            document({
                "/things": {
                    "post": {
                        "requestBody": {
                            "content": {
                                "application/json": {
                                    "schema": {
                                        "$ref": "#/components/schemas/Nope"
                                    }
                                }
                            }
                        }
                    }
                }
            })
        )
        tool = registry["POST::things"]
        assert tool.properties["body"] == {LOCATION_KEY: "body"}
        assert [d.kind for d in registry.diagnostics] == [
            DiagnosticKind.SCHEMA_RESOLUTION
        ]

    def test_document_not_mutated(self):
        components = {
            "schemas": {
                "User": {
                    "type": "object",
                    "properties": {"name": {"type": "string"}},
                }
            }
        }
        doc = document(
            {
                "/users": {
                    "post": {
                        "requestBody": {
                            "content": {
                                "application/json": {
                                    "schema": {
                                        "$ref": "#/components/schemas/User"
                                    }
                                }
                            }
                        }
                    }
                }
            },
            components=components,
        )
        compile_openapi(doc)
        assert components["schemas"]["User"]["properties"]["name"] == {
            "type": "string"
        }


class TestCollisions:
    """测试冲突策略"""

    def colliding_ids(self):
        return document({
            "/users/{id}": {"get": {"operationId": "first"}},
            "/users/{id}/": {"get": {"operationId": "second"}},
        })

    def colliding_names(self):
        return document({
            "/users": {"get": {"operationId": "listUsers"}},
            "/members": {"get": {"operationId": "listUsers"}},
            "/people": {"get": {"operationId": "listUsers"}},
        })

    def test_tool_id_collision_first_wins(self):
        registry = compile_openapi(self.colliding_ids())

        assert len(registry) == 1
        assert registry["GET::users__---id"].name == "first"
        assert [d.kind for d in registry.diagnostics] == [
            DiagnosticKind.TOOL_ID_COLLISION
        ]

    def test_tool_name_collision_suffixed(self):
        registry = compile_openapi(self.colliding_names())

        assert registry["GET::users"].name == "list-usrs"
        assert registry["GET::members"].name == "list-usrs-2"
        assert registry["GET::people"].name == "list-usrs-3"
        assert [d.kind for d in registry.diagnostics] == [
            DiagnosticKind.TOOL_NAME_COLLISION
        ] * 2

    def test_strict_tool_id_collision(self):
        with pytest.raises(ToolNameCollisionError) as exc_info:
            compile_openapi(self.colliding_ids(), strict=True)
        assert exc_info.value.key == "GET::users__---id"

    def test_strict_tool_name_collision(self):
        with pytest.raises(ToolNameCollisionError) as exc_info:
            compile_openapi(self.colliding_names(), strict=True)
        assert exc_info.value.key == "list-usrs"


class TestHelpers:
    """测试辅助函数"""

    def test_extract_resource_name(self):
        assert extract_resource_name("/users/{id}") == "users"
        assert extract_resource_name("/orgs/{org}/repos") == "repos"
        assert extract_resource_name("/{id}") is None
        assert extract_resource_name("/") is None

    def test_pick_server_url(self):
        assert pick_server_url(None) is None
        assert pick_server_url([]) is None
        assert pick_server_url(["https://a.example.com"]) == (
            "https://a.example.com"
        )
        assert pick_server_url({"url": "https://b.example.com"}) == (
            "https://b.example.com"
        )
        assert pick_server_url([{"description": "no url"}]) is None

    def test_pick_server_url_precedence(self):
        assert pick_server_url(
            None, [{"description": "no url"}], "https://c.example.com"
        ) == "https://c.example.com"
        operation = [{"url": "https://a.example.com"}]
        path_item = [{"url": "https://b.example.com"}]
        assert pick_server_url(operation, path_item) == "https://a.example.com"

    def test_pick_server_url_variables(self):
        server = {
            "url": "https://{region}.example.com/{version}",
            "variables": {"region": {"default": "eu"}, "version": "broken"},
        }
        assert pick_server_url([server]) == "https://eu.example.com/{version}"

    def test_empty_document(self):
        assert len(compile_openapi({})) == 0
        assert len(compile_openapi({"paths": []})) == 0

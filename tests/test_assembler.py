"""Tests for routedoc.assembler."""

from __future__ import annotations

import json
from pathlib import Path

from routedoc.assembler import DocumentBuilder, build_document, match_entity
from routedoc.config import InfoConfig, RoutedocConfig
from routedoc.models import DeclaredHandler, EntitySchema, Mount, Route
from routedoc.stores import DocumentStore, StaticCatalog

SEND_MESSAGE = """
export const sendMessageController = async (req, res) => {
  try {
    const { reqData } = req.body;
    const { groupId, type, content } = reqData || {};
    const message = await Message.create({ groupId, type, content });
    return sendSuccess(res, { message: { id: message.id, content } }, 201);
  } catch (error) {
    return sendError(res, error.message, 500);
  }
};
"""

GET_GROUP = """
export const getGroupController = async (req, res) => {
  const group = await Group.findByPk(req.params.id);
  return sendSuccess(res, group);
};
"""

AUTH = "export const authenticateToken = (req, res, next) => { jwt.verify(token); next(); };"
VALIDATE = "(req, res, next) => { const { error } = Joi.object({}).validate(req.body); next(); }"

CATALOG = {
    "GroupMemberModel": {"id": "INTEGER", "groupId": "INTEGER"},
    "GroupModel": {"id": "INTEGER", "name": "STRING", "inviteKey": "STRING"},
}


def _table() -> list:
    auth = DeclaredHandler("authenticateToken", AUTH)
    return [
        Route("/health", ["get"], [DeclaredHandler("", "(req, res) => res.json({ status: 'ok' })")]),
        Mount(
            "/api",
            [
                Route(
                    "/messages",
                    ["post"],
                    [auth, DeclaredHandler("validate", VALIDATE), DeclaredHandler("sendMessageController", SEND_MESSAGE)],
                ),
                Route("/groups/:id", ["get", "put"], [auth, DeclaredHandler("getGroupController", GET_GROUP)]),
                Route("/v1/groups/:id/invite-key", ["get"], [lambda req, res: None]),
            ],
        ),
    ]


def _builder(tmp_path: Path | None = None, **overrides) -> DocumentBuilder:
    config = RoutedocConfig(
        root=tmp_path or Path("."),
        info=InfoConfig(title="GroupChat API"),
        base_url="https://chat.example.com",
    )
    options = {
        "catalog": StaticCatalog(CATALOG),
        "controller_map": {
            "sendMessageController": "Message Controller",
            "getGroupController": "Group Controller",
        },
    }
    options.update(overrides)
    return DocumentBuilder(config, **options)


def test_end_to_end_message_route() -> None:
    document = _builder().build(_table())

    operation = document["paths"]["/api/messages"]["post"]
    body = operation["requestBody"]["content"]["application/json"]
    assert body["example"] == {
        "reqData": {"groupId": 1, "type": "string_type", "content": "string_content"}
    }
    assert body["schema"]["properties"]["reqData"]["properties"] == {
        "groupId": {"type": "string"},
        "type": {"type": "string"},
        "content": {"type": "string"},
    }
    response = operation["responses"]["200"]["content"]["application/json"]
    assert response["schema"]["properties"] == {"message": {"type": "string"}}
    assert operation["tags"] == ["Message Controller"]
    assert operation["summary"] == "POST /api/messages"
    assert operation["security"] == [{"BearerAuth": []}]
    assert operation["x-validators"] == ["joi"]


def test_wrapper_field_never_reaches_response() -> None:
    echo = DeclaredHandler(
        "echoController",
        """
        export const echoController = async (req, res) => {
          const { reqData } = req.body;
          return sendSuccess(res, { reqData: reqData, ok }, 200);
        };
        """,
    )
    only_wrapper = DeclaredHandler("wrapController", "res.json({ REQDATA: req.body })")

    document = _builder().build(
        [Route("/echo", ["post"], [echo]), Route("/wrap", ["get"], [only_wrapper])]
    )

    echoed = document["paths"]["/echo"]["post"]
    response = echoed["responses"]["200"]["content"]["application/json"]
    assert response["schema"] == {"type": "object", "properties": {"ok": {"type": "string"}}}
    assert response["example"] == {"ok": "string_ok"}
    assert "requestBody" not in echoed
    wrapped = document["paths"]["/wrap"]["get"]["responses"]["200"]["content"]["application/json"]
    assert wrapped == {"schema": {"type": "object"}, "example": {}}


def test_request_body_omitted_without_request_fields() -> None:
    document = _builder().build(_table())

    health = document["paths"]["/health"]["get"]
    assert "requestBody" not in health
    assert health["responses"]["200"]["content"]["application/json"]["example"] == {
        "status": "string_status"
    }
    assert "x-validators" not in health


def test_response_falls_back_to_matching_entity_schema() -> None:
    document = _builder().build(_table())

    group = document["paths"]["/api/groups/:id"]
    assert set(group) == {"get", "put"}
    content = group["get"]["responses"]["200"]["content"]["application/json"]
    assert content["schema"] == {
        "type": "object",
        "properties": {
            "id": {"type": "integer"},
            "name": {"type": "string"},
            "inviteKey": {"type": "string"},
        },
    }
    assert content["example"] == {"id": 1, "name": "string_name", "inviteKey": "string_inviteKey"}


def test_path_derived_tag_for_anonymous_handler() -> None:
    document = _builder().build(_table())

    operation = document["paths"]["/api/v1/groups/:id/invite-key"]["get"]
    assert operation["tags"] == ["Groups Controller"]


def test_document_envelope_and_sorted_tags() -> None:
    document = _builder().build(_table())

    assert document["openapi"] == "3.0.0"
    assert document["info"]["title"] == "GroupChat API"
    assert document["servers"] == [{"url": "https://chat.example.com"}]
    assert [tag["name"] for tag in document["tags"]] == [
        "Group Controller",
        "Groups Controller",
        "Health Controller",
        "Message Controller",
    ]
    assert document["tags"][0]["description"] == "Endpoints for Group Controller"
    assert document["components"]["securitySchemes"]["BearerAuth"]["scheme"] == "bearer"
    assert set(document["components"]["schemas"]) == {"GroupMemberModel", "GroupModel"}


def test_later_registration_overwrites_same_path_and_method() -> None:
    table = [
        Route("/dup", ["get", "post"], [DeclaredHandler("firstController", "res.json({ first: 1 })")]),
        Route("/dup", ["get"], [DeclaredHandler("secondController", "res.json({ second: 2 })")]),
    ]

    document = _builder(controller_map={}).build(table)

    assert list(document["paths"]) == ["/dup"]
    operations = document["paths"]["/dup"]
    get_schema = operations["get"]["responses"]["200"]["content"]["application/json"]["schema"]
    post_schema = operations["post"]["responses"]["200"]["content"]["application/json"]["schema"]
    assert list(get_schema["properties"]) == ["second"]
    assert list(post_schema["properties"]) == ["first"]
    assert operations["get"]["tags"] == ["Dup Controller"]


def test_unavailable_catalog_still_builds() -> None:
    class _Broken:
        def fetch(self):
            raise ConnectionError("no database")

    document = _builder(catalog=_Broken()).build(_table())

    assert document["components"]["schemas"] == {}
    schema = document["paths"]["/api/groups/:id"]["get"]["responses"]["200"]["content"]["application/json"]["schema"]
    assert schema == {"type": "object"}


def test_malformed_catalog_entry_does_not_fail_the_build() -> None:
    class _Partial:
        def fetch(self):
            return {"UserModel": None, **CATALOG}

    document = _builder(catalog=_Partial()).build(_table())

    assert set(document["components"]["schemas"]) == {"GroupMemberModel", "GroupModel"}


def test_rebuilds_are_byte_identical(tmp_path: Path) -> None:
    first = json.dumps(_builder().build(_table()))
    second = json.dumps(_builder().build(_table()))

    assert first == second


def test_document_is_persisted(tmp_path: Path) -> None:
    store = DocumentStore(tmp_path / "docs" / "openapi.json")
    builder = _builder(tmp_path, store=store)

    document = builder.build(_table())

    assert builder.last_written == store.path
    assert store.read() == json.loads(json.dumps(document))


def test_persistence_failure_does_not_fail_the_build(tmp_path: Path) -> None:
    blocker = tmp_path / "blocker"
    blocker.write_text("", encoding="utf-8")
    builder = _builder(tmp_path, store=DocumentStore(blocker / "openapi.json"))

    document = builder.build(_table())

    assert "/api/messages" in document["paths"]
    assert builder.last_written is None


def test_match_entity_strips_model_and_plural_suffixes() -> None:
    schemas = {
        "Users": EntitySchema("Users", {"id": "INTEGER"}),
        "MessageModel": EntitySchema("MessageModel", {"id": "INTEGER"}),
        "SModel": EntitySchema("SModel", {"id": "INTEGER"}),
    }

    assert match_entity("/Messages/search", schemas).name == "MessageModel"
    assert match_entity("/user/profile", schemas).name == "Users"
    assert match_entity("/health", schemas) is None


def test_build_document_helper() -> None:
    document = build_document([Route("/ping", ["GET"], [])])

    assert document["paths"]["/ping"]["get"]["tags"] == ["Ping Controller"]
    assert document["servers"] == [{"url": "/"}]

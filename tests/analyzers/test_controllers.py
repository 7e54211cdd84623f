"""Tests for controller discovery and owner-tag resolution."""

from __future__ import annotations

from pathlib import Path

import pytest

from routedoc.analyzers.controllers import (
    ControllerResolver,
    extract_handler_names,
    format_owner_tag,
    scan_controllers,
)
from routedoc.models import DeclaredHandler
from tests._fixtures.source_tree import SourceTree


def test_extract_handler_names_covers_export_styles() -> None:
    text = """
    export const getGroupsController = async (req, res) => {};
    export async function createGroupController(req, res) {}
    export function deleteGroupController(req, res) {}
    const joinGroupController = async (req, res) => {};
    function helper() {}
    export { joinGroupController as joinGroup, helper };
    """

    names = extract_handler_names(text)

    assert names == [
        "getGroupsController",
        "createGroupController",
        "deleteGroupController",
        "joinGroupController",
    ]


def test_extract_handler_names_from_python_modules() -> None:
    text = """
def listUsersController(request):
    return []

async def banUserController(request):
    return None
"""

    assert extract_handler_names(text) == ["listUsersController", "banUserController"]


@pytest.mark.parametrize(
    ("file_name", "expected"),
    [
        ("messageController.js", "Message Controller"),
        ("guestKeyController.js", "Guest Key Controller"),
        ("productCategoryController.ts", "Product Category Controller"),
        ("order_controller.py", "Order Controller"),
    ],
)
def test_format_owner_tag(file_name: str, expected: str) -> None:
    assert format_owner_tag(file_name) == expected


def test_scan_controllers_maps_every_function_to_its_file(source_tree: SourceTree) -> None:
    source_tree.write(
        {
            "controller/chat/messageController.js": """
                export const getMessagesController = async (req, res) => {};
                export const sendMessageController = async (req, res) => {};
            """,
            "controller/auth/guestKeyController.js": """
                export async function createGuestKeyController(req, res) {}
            """,
            "controller/auth/helpers.js": """
                export const ignoredController = () => {};
            """,
            "controller/node_modules/vendorController.js": """
                export const vendorController = () => {};
            """,
        }
    )

    mapping = scan_controllers(source_tree.path("controller"))

    assert dict(mapping) == {
        "createGuestKeyController": "Guest Key Controller",
        "getMessagesController": "Message Controller",
        "sendMessageController": "Message Controller",
    }


def test_scan_controllers_first_file_wins_on_collision(source_tree: SourceTree) -> None:
    source_tree.write(
        {
            "controller/orderController.js": "export const createOrderController = () => {};\n",
            "controller/refundController.js": "export const createOrderController = () => {};\n",
        }
    )

    mapping = scan_controllers(source_tree.path("controller"))

    assert mapping["createOrderController"] == "Order Controller"


def test_scan_controllers_does_not_follow_directory_symlinks(source_tree: SourceTree) -> None:
    source_tree.write(
        {
            "controller/chat/messageController.js": "export const sendMessageController = () => {};\n",
            "shared/auditController.js": "export const listAuditController = () => {};\n",
        }
    )
    controller = source_tree.path("controller")
    (controller / "chat" / "loop").symlink_to(controller, target_is_directory=True)
    (controller / "shared").symlink_to(source_tree.path("shared"), target_is_directory=True)

    mapping = scan_controllers(controller)

    assert dict(mapping) == {"sendMessageController": "Message Controller"}


def test_scan_controllers_returns_immutable_map(source_tree: SourceTree) -> None:
    source_tree.write({"controller/userController.js": "export const loginController = () => {};\n"})

    mapping = scan_controllers(source_tree.path("controller"))

    with pytest.raises(TypeError):
        mapping["other"] = "Other Controller"  # type: ignore[index]


def test_scan_controllers_missing_directory(tmp_path: Path) -> None:
    assert dict(scan_controllers(tmp_path / "missing")) == {}


def test_resolver_precedence() -> None:
    resolver = ControllerResolver(
        {"registerController": "User Controller", "getGroupsController": "Group Controller"}
    )

    assert resolver.resolve(DeclaredHandler("getGroupsController"), "/v1/rooms") == "Group Controller"
    assert resolver.resolve(DeclaredHandler("register"), "/auth/register") == "User Controller"
    assert resolver.resolve(DeclaredHandler("unknownController"), "/auth/login") == "Auth Controller"
    assert resolver.resolve(DeclaredHandler("listUsersController"), "/") == "List Users Controller"
    assert resolver.resolve(lambda req, res: None, "/") == "api"


def test_resolver_derives_tag_from_first_meaningful_segment() -> None:
    resolver = ControllerResolver()

    assert resolver.resolve(lambda req, res: None, "/v1/groups/:id/invite-key") == "Groups Controller"
    assert resolver.resolve(None, "/api/v2/{team_id}/members") == "Members Controller"
    assert resolver.resolve(None, "/api/v1") == "Api Controller"


def test_resolver_is_deterministic() -> None:
    resolver = ControllerResolver({"sendMessageController": "Message Controller"})
    handler = DeclaredHandler("sendMessageController")

    assert resolver.resolve(handler, "/messages") == resolver.resolve(handler, "/messages")

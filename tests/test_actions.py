"""Tests for the action-type vocabulary."""

from __future__ import annotations

import pytest

from relsync import actions
from relsync.actions import RequestKind, action_creators, classify


@pytest.mark.parametrize(
    ("type_", "expected"),
    [
        ("@@relsync/users/UPDATE_SYNC", ("users", RequestKind.UPDATE_SYNC)),
        ("@@relsync/users/DELETE_SYNC", ("users", RequestKind.DELETE_SYNC)),
        ("@@relsync/blog_posts/LOAD", ("blog_posts", RequestKind.LOAD)),
        ("@@relsync/users/SYNC_ALL", ("users", RequestKind.SYNC_ALL)),
        ("@@relsync/users/UPDATE_SUCCEEDED", None),
        ("@@relsync/users", None),
        ("users/UPDATE_SYNC", None),
        ("SOMETHING_ELSE", None),
    ],
)
def test_classify(type_, expected):
    assert classify(type_) == expected


def test_request_builders():
    assert actions.update_sync("users", entity={"id": 1}).payload == {"entity": {"id": 1}}
    assert actions.delete_sync("users", entity_id=3).payload == {"entityId": 3}
    assert actions.load("users", {"page": 1}).type == "@@relsync/users/LOAD"
    assert actions.sync_all("users").payload == {}


def test_outcome_creators_positional_contracts():
    creators = action_creators("users")

    assert creators.update_succeeded({"id": 2}, 1).payload == {"entity": {"id": 2}, "entityId": 1}
    assert creators.update_failed(1, "err").payload == {"entityId": 1, "error": "err"}
    assert creators.delete_succeeded(1, {"ok": True}).payload == {"entityId": 1, "result": {"ok": True}}
    assert creators.delete_failed(1, "err").payload == {"entityId": 1, "error": "err"}
    assert creators.sync_failed(1, "err").type == "@@relsync/users/SYNC_FAILED"

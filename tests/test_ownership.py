import threading

import pytest
from sqlalchemy import delete, update
from sqlalchemy.exc import DBAPIError
from sqlmodel import Session, select

from todo_api.core.exceptions import LastOwnerViolation
from todo_api.core.permissions import RoleName
from todo_api.models.note import Note
from todo_api.models.role import UserRole
from todo_api.models.todo import Todo
from todo_api.services.items import create_item, delete_item, get_role_id
from todo_api.services.notes import create_note
from todo_api.services.sharing import count_owners, revoke_access, share_item
from todo_api.services.todos import create_todo

ITEMS = "/api/v1/items"


def _add_owner(db, item_id, user_id, created_by):
    db.add(UserRole(
        item_id=item_id,
        user_id=user_id,
        role_id=get_role_id(db, RoleName.OWNER),
        created_by=created_by,
    ))
    db.commit()


def test_owner_can_remove_another_owner(db, alice, bob):
    item = create_item(db, alice.id, "Plans")
    _add_owner(db, item.id, bob.id, alice.id)
    assert count_owners(db, item.id) == 2

    revoke_access(db, alice.id, item.id, bob.id)
    assert count_owners(db, item.id) == 1


def test_removing_the_last_owner_is_rejected(db, alice, bob):
    item = create_item(db, alice.id, "Plans")
    share_item(db, alice.id, item.id, bob.id, "editor")

    with pytest.raises(LastOwnerViolation):
        revoke_access(db, alice.id, item.id, alice.id)
    assert count_owners(db, item.id) == 1


def test_either_of_two_owners_can_leave_but_not_both(db, alice, bob):
    item = create_item(db, alice.id, "Plans")
    _add_owner(db, item.id, bob.id, alice.id)

    revoke_access(db, bob.id, item.id, bob.id)
    with pytest.raises(LastOwnerViolation):
        revoke_access(db, alice.id, item.id, alice.id)
    assert count_owners(db, item.id) == 1


def test_raw_delete_of_last_owner_is_refused_by_the_database(db, alice):
    item = create_item(db, alice.id, "Plans")

    with pytest.raises(DBAPIError):
        db.exec(delete(UserRole).where(UserRole.item_id == item.id, UserRole.user_id == alice.id))
    db.rollback()
    assert count_owners(db, item.id) == 1


def test_raw_demotion_of_last_owner_is_refused_by_the_database(db, alice):
    item = create_item(db, alice.id, "Plans")
    viewer_id = get_role_id(db, RoleName.VIEWER)

    with pytest.raises(DBAPIError):
        db.exec(
            update(UserRole)
            .where(UserRole.item_id == item.id, UserRole.user_id == alice.id)
            .values(role_id=viewer_id)
        )
    db.rollback()
    assert count_owners(db, item.id) == 1


def test_sole_owner_cannot_demote_themselves_by_sharing(db, alice):
    item = create_item(db, alice.id, "Plans")
    with pytest.raises(LastOwnerViolation):
        share_item(db, alice.id, item.id, alice.id, "viewer")
    assert count_owners(db, item.id) == 1


def test_last_owner_response(client, alice, bob, auth_headers):
    headers = auth_headers(alice)
    item = client.post(ITEMS, json={"name": "Mine"}, headers=headers).json()

    response = client.delete(f"{ITEMS}/{item['id']}/members/{alice.id}", headers=headers)
    assert response.status_code == 409
    assert response.json()["code"] == "last_owner"


def test_deleting_item_removes_children_and_assignments(db, alice, bob):
    item = create_item(db, alice.id, "Plans")
    item_id = item.id
    share_item(db, alice.id, item_id, bob.id, "viewer")
    create_todo(db, item_id, "pack bags")
    create_note(db, item_id, "passport in drawer")

    delete_item(db, item_id)

    assert db.exec(select(UserRole).where(UserRole.item_id == item_id)).all() == []
    assert db.exec(select(Todo).where(Todo.item_id == item_id)).all() == []
    assert db.exec(select(Note).where(Note.item_id == item_id)).all() == []


def _shared_with(client, owner_headers, user, role):
    item = client.post(ITEMS, json={"name": "Mine"}, headers=owner_headers).json()
    client.post(f"{ITEMS}/{item['id']}/share", json={"user_id": user.id, "role": role},
                headers=owner_headers)
    return f"{ITEMS}/{item['id']}"


def test_editor_may_delete_item(client, alice, bob, auth_headers):
    url = _shared_with(client, auth_headers(alice), bob, "editor")

    assert client.delete(url, headers=auth_headers(bob)).status_code == 204
    assert client.get(url, headers=auth_headers(alice)).status_code == 404


def test_viewer_may_not_delete_item(client, alice, bob, auth_headers):
    url = _shared_with(client, auth_headers(alice), bob, "viewer")

    response = client.delete(url, headers=auth_headers(bob))
    assert response.status_code == 403
    assert client.get(url, headers=auth_headers(alice)).status_code == 200


def test_two_owners_leaving_at_once_keep_one(engine, db, alice, bob):
    item = create_item(db, alice.id, "Plans")
    item_id = item.id
    _add_owner(db, item_id, bob.id, alice.id)

    barrier = threading.Barrier(2, timeout=10)
    outcomes = []

    def leave(user_id):
        with Session(engine) as session:
            barrier.wait()
            try:
                revoke_access(session, user_id, item_id, user_id)
                outcomes.append("ok")
            except LastOwnerViolation:
                outcomes.append("last_owner")

    threads = [threading.Thread(target=leave, args=(user_id,)) for user_id in (alice.id, bob.id)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join(timeout=30)

    assert sorted(outcomes) == ["last_owner", "ok"]
    with Session(engine) as reader:
        assert count_owners(reader, item_id) == 1

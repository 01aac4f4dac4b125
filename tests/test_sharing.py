from sqlmodel import select

from todo_api.models.role import UserRole

ITEMS = "/api/v1/items"


def _create(client, headers, name="Trip"):
    return client.post(ITEMS, json={"name": name, "content": {"todo": []}}, headers=headers).json()


def _share(client, headers, item_id, user_id, role):
    return client.post(f"{ITEMS}/{item_id}/share", json={"user_id": user_id, "role": role}, headers=headers)


def test_owner_shares_with_viewer(client, alice, bob, auth_headers):
    item = _create(client, auth_headers(alice))
    response = _share(client, auth_headers(alice), item["id"], bob.id, "viewer")
    assert response.status_code == 200, response.text
    member = response.json()
    assert member["user_id"] == bob.id
    assert member["role"] == "viewer"
    assert member["created_by"] == alice.id

    seen = client.get(f"{ITEMS}/{item['id']}", headers=auth_headers(bob))
    assert seen.status_code == 200
    assert seen.json()["role"] == "viewer"


def test_scenario_viewer_cannot_edit_and_stale_retry_conflicts(client, alice, bob, auth_headers):
    a, b = auth_headers(alice), auth_headers(bob)
    item = _create(client, a)
    url = f"{ITEMS}/{item['id']}"
    assert item["version"] == 1

    assert _share(client, a, item["id"], bob.id, "viewer").status_code == 200

    forbidden = client.put(url, json={"name": "bob was here", "version": 1}, headers=b)
    assert forbidden.status_code == 403
    assert forbidden.json()["code"] == "forbidden"

    edited = client.put(url, json={"name": "Trip v2", "version": 1}, headers=a)
    assert edited.status_code == 200
    assert edited.json()["version"] == 2

    retried = client.put(url, json={"name": "Trip v2 again", "version": 1}, headers=a)
    assert retried.status_code == 409


def test_sharing_twice_leaves_one_assignment(client, db, alice, bob, auth_headers):
    item = _create(client, auth_headers(alice))
    for _ in range(2):
        assert _share(client, auth_headers(alice), item["id"], bob.id, "editor").status_code == 200

    rows = db.exec(
        select(UserRole).where(UserRole.item_id == item["id"], UserRole.user_id == bob.id)
    ).all()
    assert len(rows) == 1


def test_sharing_again_changes_the_role(client, alice, bob, auth_headers):
    item = _create(client, auth_headers(alice))
    _share(client, auth_headers(alice), item["id"], bob.id, "viewer")
    response = _share(client, auth_headers(alice), item["id"], bob.id, "editor")
    assert response.json()["role"] == "editor"

    edit = client.put(f"{ITEMS}/{item['id']}", json={"name": "by bob", "version": 1}, headers=auth_headers(bob))
    assert edit.status_code == 200


def test_invalid_role_is_rejected(client, alice, bob, auth_headers):
    item = _create(client, auth_headers(alice))
    for role in ("owner", "admin", ""):
        response = _share(client, auth_headers(alice), item["id"], bob.id, role)
        assert response.status_code == 400
        assert response.json()["code"] == "invalid_role"


def test_editor_cannot_share(client, alice, bob, carol, auth_headers):
    item = _create(client, auth_headers(alice))
    _share(client, auth_headers(alice), item["id"], bob.id, "editor")

    response = _share(client, auth_headers(bob), item["id"], carol.id, "viewer")
    assert response.status_code == 403


def test_stranger_cannot_share(client, alice, bob, carol, auth_headers):
    item = _create(client, auth_headers(alice))
    response = _share(client, auth_headers(carol), item["id"], bob.id, "viewer")
    assert response.status_code == 404


def test_sharing_with_unknown_user_is_not_found(client, db, alice, auth_headers):
    item = _create(client, auth_headers(alice))
    response = _share(client, auth_headers(alice), item["id"], 4242, "viewer")
    assert response.status_code == 404
    assert response.json()["code"] == "user_not_found"
    assert len(db.exec(select(UserRole).where(UserRole.item_id == item["id"])).all()) == 1


def test_members_list(client, alice, bob, auth_headers):
    item = _create(client, auth_headers(alice))
    _share(client, auth_headers(alice), item["id"], bob.id, "viewer")

    members = client.get(f"{ITEMS}/{item['id']}/members", headers=auth_headers(bob)).json()
    assert {(m["email"], m["role"]) for m in members} == {
        ("alice@example.com", "owner"),
        ("bob@example.com", "viewer"),
    }


def test_member_can_leave_and_owner_can_revoke(client, alice, bob, carol, auth_headers):
    item = _create(client, auth_headers(alice))
    _share(client, auth_headers(alice), item["id"], bob.id, "viewer")
    _share(client, auth_headers(alice), item["id"], carol.id, "editor")

    left = client.delete(f"{ITEMS}/{item['id']}/members/{bob.id}", headers=auth_headers(bob))
    assert left.status_code == 204
    assert client.get(f"{ITEMS}/{item['id']}", headers=auth_headers(bob)).status_code == 404

    revoked = client.delete(f"{ITEMS}/{item['id']}/members/{carol.id}", headers=auth_headers(alice))
    assert revoked.status_code == 204
    missing = client.delete(f"{ITEMS}/{item['id']}/members/{carol.id}", headers=auth_headers(alice))
    assert missing.status_code == 404


def test_editor_cannot_revoke_others(client, alice, bob, carol, auth_headers):
    item = _create(client, auth_headers(alice))
    _share(client, auth_headers(alice), item["id"], bob.id, "editor")
    _share(client, auth_headers(alice), item["id"], carol.id, "viewer")

    response = client.delete(f"{ITEMS}/{item['id']}/members/{carol.id}", headers=auth_headers(bob))
    assert response.status_code == 403

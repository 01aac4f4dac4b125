from datetime import timedelta

from todo_api.core.security import create_access_token
from todo_api.services.oauth import ProviderProfile

API = "/api/v1"


def _profile(email="dana@example.com", name="Dana", user_id="g-100"):
    return ProviderProfile(provider="google", provider_user_id=user_id, email=email, name=name)


def test_missing_token_is_rejected(client):
    response = client.get(f"{API}/users/me")
    assert response.status_code == 401
    assert response.headers["WWW-Authenticate"] == "Bearer"


def test_garbage_token_is_rejected(client):
    response = client.get(f"{API}/users/me", headers={"Authorization": "Bearer not-a-jwt"})
    assert response.status_code == 401


def test_expired_token_is_rejected(client, settings, alice):
    token = create_access_token(subject=alice.id, settings=settings, expires_delta=timedelta(minutes=-5))
    response = client.get(f"{API}/users/me", headers={"Authorization": f"Bearer {token}"})
    assert response.status_code == 401


def test_token_for_deleted_user_is_rejected(client, settings):
    token = create_access_token(subject=9999, settings=settings)
    response = client.get(f"{API}/users/me", headers={"Authorization": f"Bearer {token}"})
    assert response.status_code == 401


def test_me_returns_current_user(client, alice, auth_headers):
    response = client.get(f"{API}/users/me", headers=auth_headers(alice))
    assert response.status_code == 200
    assert response.json()["email"] == "alice@example.com"
    assert response.json()["id"] == alice.id


def test_cookie_authentication(client, settings, alice):
    token = create_access_token(subject=alice.id, settings=settings)
    client.cookies.set("access_token", f"Bearer {token}")
    try:
        response = client.get(f"{API}/users/me")
    finally:
        client.cookies.clear()
    assert response.status_code == 200
    assert response.json()["id"] == alice.id


def test_callback_creates_user_and_issues_token(client, oauth_client):
    oauth_client.profiles["good-code"] = _profile()

    response = client.get(f"{API}/auth/callback", params={"code": "good-code"})
    assert response.status_code == 200, response.text
    body = response.json()
    assert body["token_type"] == "bearer"
    assert "access_token" in response.cookies
    client.cookies.clear()

    me = client.get(f"{API}/users/me", headers={"Authorization": f"Bearer {body['access_token']}"})
    assert me.json()["email"] == "dana@example.com"
    assert me.json()["username"] == "Dana"


def test_later_login_refreshes_profile(client, oauth_client):
    oauth_client.profiles["first"] = _profile()
    oauth_client.profiles["second"] = _profile(email="dana@new.example.com", name="Dana S.")

    first = client.get(f"{API}/auth/callback", params={"code": "first"}).json()
    second = client.get(f"{API}/auth/callback", params={"code": "second"}).json()
    client.cookies.clear()

    me_first = client.get(f"{API}/users/me", headers={"Authorization": f"Bearer {first['access_token']}"}).json()
    me_second = client.get(f"{API}/users/me", headers={"Authorization": f"Bearer {second['access_token']}"}).json()
    assert me_first["id"] == me_second["id"]
    assert me_second["email"] == "dana@new.example.com"
    assert me_second["username"] == "Dana S."


def test_callback_without_code_is_bad_request(client):
    assert client.get(f"{API}/auth/callback").status_code == 400


def test_callback_with_rejected_code_is_bad_gateway(client):
    response = client.get(f"{API}/auth/callback", params={"code": "unknown"})
    assert response.status_code == 502
    assert response.json()["code"] == "provider_error"


def test_login_redirects_to_provider(client):
    response = client.get(f"{API}/auth/login", follow_redirects=False)
    assert response.status_code == 307
    assert response.headers["location"].startswith("https://accounts.example.com/")


def test_logout_clears_cookie(client):
    response = client.get(f"{API}/auth/logout", follow_redirects=False)
    assert response.status_code == 303
    assert "access_token" in response.headers["set-cookie"]


def test_lookup_user_by_email(client, alice, bob, auth_headers):
    response = client.get(f"{API}/users/lookup", params={"email": "bob@example.com"}, headers=auth_headers(alice))
    assert response.status_code == 200
    assert response.json() == {"user_id": bob.id}

    missing = client.get(f"{API}/users/lookup", params={"email": "nobody@example.com"}, headers=auth_headers(alice))
    assert missing.status_code == 404


def test_health(client):
    response = client.get(f"{API}/health")
    assert response.status_code == 200
    assert response.json() == {"status": "ok"}


def test_login_keeps_email_already_taken_by_another_user(client, oauth_client, alice):
    oauth_client.profiles["first"] = _profile()
    oauth_client.profiles["clash"] = _profile(email="alice@example.com", name="Dana Two")

    client.get(f"{API}/auth/callback", params={"code": "first"})
    response = client.get(f"{API}/auth/callback", params={"code": "clash"})
    client.cookies.clear()
    assert response.status_code == 200, response.text

    me = client.get(f"{API}/users/me", headers={"Authorization": f"Bearer {response.json()['access_token']}"}).json()
    assert me["email"] == "dana@example.com"
    assert me["username"] == "Dana Two"


def test_upsert_does_not_take_over_another_users_email(db, alice):
    from todo_api.services.users import upsert_oauth_user

    dana = upsert_oauth_user(db, "google", "g-200", "dana@example.com", "Dana")
    again = upsert_oauth_user(db, "google", "g-200", "alice@example.com", "Dana")
    assert again.id == dana.id
    assert again.email == "dana@example.com"

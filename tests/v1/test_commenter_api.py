# mypy: ignore-errors
"""Tests for commenter account and SSO endpoints."""

import json
from urllib.parse import parse_qs, urlsplit

from fastapi import status

from threadline.core.security import sign_hmac_sha256

from tests.conftest import COMMENTER_PASSWORD, SSO_SECRET_HEX


def test_register_login_and_self(client) -> None:
    created = client.post(
        "/api/v1/commenters/new",
        json={"email": "carol@example.org", "name": "Carol", "password": "pw"},
    )
    assert created.status_code == status.HTTP_201_CREATED

    login = client.post(
        "/api/v1/commenters/login", json={"email": "carol@example.org", "password": "pw"}
    )
    assert login.status_code == status.HTTP_200_OK
    body = login.json()
    assert body["commenter"]["commenter_hex"] == created.json()["commenter_hex"]

    me = client.get(
        "/api/v1/commenters/self",
        headers={"Authorization": f"Bearer {body['commenter_token']}"},
    )
    assert me.json()["provider"] == "local"


def test_login_failure(client, alice) -> None:
    response = client.post(
        "/api/v1/commenters/login",
        json={"email": alice.commenter.email, "password": COMMENTER_PASSWORD + "x"},
    )

    assert response.status_code == status.HTTP_401_UNAUTHORIZED
    assert response.json()["code"] == "invalid_credentials"


def test_anonymous_self_is_rejected(client) -> None:
    assert client.get("/api/v1/commenters/self").status_code == status.HTTP_401_UNAUTHORIZED


def test_logout(client, alice) -> None:
    assert client.post("/api/v1/commenters/logout", headers=alice.headers).status_code == 200
    assert client.get("/api/v1/commenters/self", headers=alice.headers).status_code == 401


def test_sso_round_trip(client, domain) -> None:
    token = client.post("/api/v1/commenters/token").json()["commenter_token"]

    redirect = client.get(
        "/api/v1/sso/redirect",
        params={"domain": "example.com", "commenter_token": token},
        follow_redirects=False,
    )
    assert redirect.status_code == status.HTTP_302_FOUND
    sso_token = parse_qs(urlsplit(redirect.headers["location"]).query)["token"][0]

    raw = json.dumps({"token": sso_token, "email": "sam@corp.example", "name": "Sam"}).encode()
    signature = sign_hmac_sha256(bytes.fromhex(SSO_SECRET_HEX), raw).hex()
    callback = client.post(
        "/api/v1/sso/callback", data={"payload": raw.hex(), "hmac": signature}
    )
    assert callback.status_code == status.HTTP_200_OK
    assert callback.text == "<html><script>window.parent.close()</script></html>"

    me = client.get("/api/v1/commenters/self", headers={"Authorization": f"Bearer {token}"})
    assert me.json()["provider"] == "sso:example.com"

    replay = client.get("/api/v1/sso/callback", params={"payload": raw.hex(), "hmac": signature})
    assert replay.status_code == status.HTTP_400_BAD_REQUEST
    assert replay.text.startswith("Error: ")


def test_sso_callback_errors_are_html(client) -> None:
    response = client.get("/api/v1/sso/callback", params={"payload": "zz", "hmac": "00"})

    assert response.status_code == status.HTTP_400_BAD_REQUEST
    assert response.headers["content-type"].startswith("text/html")
    assert response.text.startswith("Error: invalid payload hex encoding")

# mypy: ignore-errors
"""Tests for comment endpoints."""

import asyncio
import time

import httpx
from fastapi import status

from threadline.core.settings import get_settings


def _create(client, headers=None, markdown="Hello", path="/post-1", parent_hex="root"):
    return client.post(
        "/api/v1/comments/new",
        json={"domain": "example.com", "path": path, "parent_hex": parent_hex, "markdown": markdown},
        headers=headers or {},
    )


def test_create_and_list(client, domain, alice) -> None:
    created = _create(client, alice.headers, "Hello **there**")
    assert created.status_code == status.HTTP_201_CREATED
    assert created.json()["state"] == "approved"

    listing = client.post("/api/v1/comments/list", json={"domain": "example.com", "path": "/post-1"})
    assert listing.status_code == status.HTTP_200_OK
    body = listing.json()
    assert [c["html"] for c in body["comments"]] == ["<p>Hello <strong>there</strong></p>"]
    assert body["comments"][0]["markdown"] is None
    assert "anonymous" in body["commenters"]


def test_anonymous_token_literal(client, domain) -> None:
    created = _create(client, {"Authorization": "Bearer anonymous"})

    assert created.status_code == status.HTTP_201_CREATED
    assert created.json()["commenter_hex"] == "anonymous"


def test_invalid_commenter_token(client, domain) -> None:
    response = _create(client, {"Authorization": "Bearer not-a-token"})

    assert response.status_code == status.HTTP_401_UNAUTHORIZED


def test_unknown_domain(client) -> None:
    response = _create(client)

    assert response.status_code == status.HTTP_404_NOT_FOUND
    assert response.json() == {"detail": "this domain is not registered", "code": "no_such_domain"}


def test_count(client, domain, alice) -> None:
    _create(client, alice.headers)
    _create(client, alice.headers)

    response = client.post(
        "/api/v1/comments/count", json={"domain": "example.com", "paths": ["/post-1"]}
    )
    assert response.json() == {"comment_counts": {"/post-1": 2}}

    empty = client.post("/api/v1/comments/count", json={"domain": "example.com", "paths": []})
    assert empty.status_code == status.HTTP_400_BAD_REQUEST
    assert empty.json()["code"] == "empty_paths"


def test_approve_edit_delete(client, domain, db_session, alice, bob, moderator) -> None:
    domain.require_moderation = True
    db_session.commit()
    comment_hex = _create(client, alice.headers).json()["comment_hex"]

    denied = client.post(f"/api/v1/comments/{comment_hex}/approve", headers=bob.headers)
    assert denied.status_code == status.HTTP_403_FORBIDDEN
    approved = client.post(f"/api/v1/comments/{comment_hex}/approve", headers=moderator.headers)
    assert approved.status_code == status.HTTP_200_OK

    edited = client.post(
        f"/api/v1/comments/{comment_hex}/edit", json={"markdown": "_edited_"}, headers=alice.headers
    )
    assert edited.json() == {"html": "<p><em>edited</em></p>"}

    deleted = client.delete(f"/api/v1/comments/{comment_hex}", headers=alice.headers)
    assert deleted.status_code == status.HTTP_204_NO_CONTENT

    listing = client.post(
        "/api/v1/comments/list",
        json={"domain": "example.com", "path": "/post-1"},
        headers=moderator.headers,
    )
    assert listing.json()["comments"] == []


def test_edit_unknown_comment(client, domain, alice) -> None:
    response = client.post(
        f"/api/v1/comments/{'ab' * 32}/edit", json={"markdown": "x"}, headers=alice.headers
    )

    assert response.status_code == status.HTTP_404_NOT_FOUND


def test_slow_spam_check_does_not_stall_other_requests(app, domain, spam_checker) -> None:
    spam_checker.delay = 1.0

    async def exchange():
        transport = httpx.ASGITransport(app=app)
        async with httpx.AsyncClient(transport=transport, base_url="http://test") as ac:

            async def timed_health():
                await asyncio.sleep(0.1)
                started = time.perf_counter()
                response = await ac.get("/health")
                return response, time.perf_counter() - started

            return await asyncio.gather(
                ac.post(
                    "/api/v1/comments/new",
                    json={"domain": "example.com", "path": "/post-1", "markdown": "slow"},
                ),
                timed_health(),
            )

    created, (health, elapsed) = asyncio.run(exchange())

    assert created.status_code == status.HTTP_201_CREATED
    assert health.status_code == status.HTTP_200_OK
    assert elapsed < 0.5


def test_forwarded_for_ignored_by_default(client, domain, spam_checker) -> None:
    _create(client, {"X-Forwarded-For": "198.51.100.9"})

    assert spam_checker.contexts[-1].ip == "testclient"


def test_forwarded_for_trusted_behind_proxy(app, client, domain, spam_checker, test_settings) -> None:
    trusted = test_settings.model_copy(update={"trust_proxy_headers": True})
    app.dependency_overrides[get_settings] = lambda: trusted

    _create(client, {"X-Forwarded-For": "198.51.100.9, 10.0.0.1"})

    assert spam_checker.contexts[-1].ip == "198.51.100.9"

# mypy: ignore-errors
"""Tests for vote-related endpoints."""

from fastapi import status


def _comment(client, headers) -> str:
    response = client.post(
        "/api/v1/comments/new",
        json={"domain": "example.com", "path": "/post-1", "markdown": "vote on me"},
        headers=headers,
    )
    return response.json()["comment_hex"]


def test_cast_upvote(client, domain, alice, bob) -> None:
    comment_hex = _comment(client, alice.headers)

    response = client.post(
        "/api/v1/votes/", json={"comment_hex": comment_hex, "direction": 1}, headers=bob.headers
    )

    assert response.status_code == status.HTTP_200_OK
    assert response.json() == {"comment_hex": comment_hex, "direction": 1, "score": 1}


def test_direction_is_clamped(client, domain, alice, bob) -> None:
    comment_hex = _comment(client, alice.headers)

    response = client.post(
        "/api/v1/votes/", json={"comment_hex": comment_hex, "direction": -7}, headers=bob.headers
    )

    assert response.json()["direction"] == -1
    assert response.json()["score"] == -1


def test_vote_shows_in_listing(client, domain, alice, bob) -> None:
    comment_hex = _comment(client, alice.headers)
    client.post("/api/v1/votes/", json={"comment_hex": comment_hex, "direction": 1}, headers=bob.headers)

    listing = client.post(
        "/api/v1/comments/list",
        json={"domain": "example.com", "path": "/post-1"},
        headers=bob.headers,
    )

    comment = listing.json()["comments"][0]
    assert comment["direction"] == 1
    assert comment["score"] == 1


def test_self_vote(client, domain, alice) -> None:
    comment_hex = _comment(client, alice.headers)

    response = client.post(
        "/api/v1/votes/", json={"comment_hex": comment_hex, "direction": 1}, headers=alice.headers
    )

    assert response.status_code == status.HTTP_400_BAD_REQUEST
    assert response.json()["code"] == "self_vote"


def test_anonymous_vote(client, domain, alice) -> None:
    comment_hex = _comment(client, alice.headers)

    response = client.post("/api/v1/votes/", json={"comment_hex": comment_hex, "direction": 1})

    assert response.status_code == status.HTTP_403_FORBIDDEN


def test_vote_invalid_payload(client, bob) -> None:
    response = client.post("/api/v1/votes/", json={"direction": 1}, headers=bob.headers)

    assert response.status_code == 422

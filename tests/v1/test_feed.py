"""Tests for the hot and new feed endpoints."""

from __future__ import annotations

from datetime import timedelta

import pytest
from fastapi import status

from tests.conftest import BASE_TIME


@pytest.fixture()
def five_posts(make_post, test_user):
    return [
        make_post(test_user, created_at=BASE_TIME + timedelta(minutes=i), title=f"post {i}")
        for i in range(5)
    ]


def test_new_feed(client, five_posts) -> None:
    response = client.get("/api/v1/feed/new")
    assert response.status_code == status.HTTP_200_OK
    data = response.json()
    assert [post["id"] for post in data["posts"]] == [post.id for post in reversed(five_posts)]
    assert data["next_cursor"] is None


@pytest.mark.parametrize("feed", ["hot", "new"])
def test_feed_pagination(client, five_posts, feed) -> None:
    seen: list[int] = []
    params: dict[str, str | int] = {"limit": 2}
    while True:
        data = client.get(f"/api/v1/feed/{feed}", params=params).json()
        seen.extend(post["id"] for post in data["posts"])
        if data["next_cursor"] is None:
            break
        params["cursor"] = data["next_cursor"]

    assert sorted(seen) == sorted(post.id for post in five_posts)
    assert len(seen) == len(set(seen))


def test_hot_feed_reflects_votes(client, make_post, test_user) -> None:
    quiet = make_post(test_user, created_at=BASE_TIME)
    loved = make_post(test_user, created_at=BASE_TIME)
    for i in range(3):
        client.post(
            f"/api/v1/votes/posts/{loved.id}",
            json={"value": 1, "anonymous_id": f"fan-{i}"},
        )

    posts = client.get("/api/v1/feed/hot").json()["posts"]
    assert [post["id"] for post in posts] == [loved.id, quiet.id]
    assert posts[0]["score"] == 3


def test_cursor_from_other_feed_is_rejected(client, five_posts) -> None:
    cursor = client.get("/api/v1/feed/hot", params={"limit": 1}).json()["next_cursor"]
    response = client.get("/api/v1/feed/new", params={"cursor": cursor})
    assert response.status_code == status.HTTP_400_BAD_REQUEST


def test_garbage_cursor_is_rejected(client) -> None:
    response = client.get("/api/v1/feed/hot", params={"cursor": "%%%"})
    assert response.status_code == status.HTTP_400_BAD_REQUEST


def test_category_filter(client, make_post, test_user, category) -> None:
    tagged = make_post(test_user, category=category)
    make_post(test_user)

    posts = client.get("/api/v1/feed/new", params={"category": category.slug}).json()["posts"]
    assert [post["id"] for post in posts] == [tagged.id]


def test_unknown_category(client) -> None:
    response = client.get("/api/v1/feed/hot", params={"category": "nope"})
    assert response.status_code == status.HTTP_404_NOT_FOUND


def test_limit_must_be_positive(client) -> None:
    response = client.get("/api/v1/feed/new", params={"limit": 0})
    assert response.status_code == status.HTTP_422_UNPROCESSABLE_ENTITY

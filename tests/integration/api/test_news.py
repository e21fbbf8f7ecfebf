"""Integration tests for news, news songs and news types."""

import pytest
from fastapi.testclient import TestClient

pytestmark = pytest.mark.integration


def create_news(client: TestClient, headers, **body) -> dict:
    response = client.post("/api/news", json=body, headers=headers)
    assert response.status_code == 201, response.text
    return response.json()


@pytest.fixture
def artist_id(client: TestClient, admin_headers) -> str:
    response = client.post("/api/artists", json={"name": "Jazzu"}, headers=admin_headers)
    return response.json()["id"]


def test_news_crud(client: TestClient, admin_headers, artist_id: str) -> None:
    news = create_news(
        client,
        admin_headers,
        title="Jazzu išleido albumą",
        body="<p>Tekstas</p>",
        artist_id=artist_id,
        gallery=[{"url": "https://img/1.jpg", "caption": "Viršelis"}, {"url": ""}],
    )

    assert news["slug"] == "jazzu-isleido-albuma"
    assert news["type"] == "news"
    assert news["gallery"] == [{"url": "https://img/1.jpg", "caption": "Viršelis"}]

    response = client.put(
        f"/api/news/{news['id']}",
        json={"title": "Jazzu išleido albumą", "type": "interviu", "slug": news["slug"]},
        headers=admin_headers,
    )
    assert response.status_code == 200, response.text
    assert response.json()["slug"] == news["slug"]
    assert response.json()["artist_id"] is None
    assert response.json()["created_at"] == news["created_at"]

    assert (
        client.delete(f"/api/news/{news['id']}", headers=admin_headers).status_code == 204
    )
    assert client.get(f"/api/news/{news['id']}").status_code == 404


def test_same_title_gets_suffixed_slug(client: TestClient, admin_headers) -> None:
    slugs = [
        create_news(client, admin_headers, title="Naujas albumas!")["slug"]
        for _ in range(3)
    ]

    assert slugs == ["naujas-albumas", "naujas-albumas-1", "naujas-albumas-2"]


def test_list_newest_first_with_filters(client: TestClient, admin_headers) -> None:
    create_news(
        client, admin_headers, title="Senas", published_at="2020-01-01T10:00:00+00:00"
    )
    create_news(
        client,
        admin_headers,
        title="Naujas interviu",
        type="interviu",
        published_at="2024-06-01T10:00:00+00:00",
    )
    create_news(
        client, admin_headers, title="Vidurinis", published_at="2022-03-01T10:00:00+00:00"
    )

    listing = client.get("/api/news").json()
    assert [item["title"] for item in listing["news"]] == [
        "Naujas interviu",
        "Vidurinis",
        "Senas",
    ]
    assert listing["total_count"] == 3

    only_interviews = client.get("/api/news", params={"type": "interviu"}).json()
    assert [item["title"] for item in only_interviews["news"]] == ["Naujas interviu"]

    searched = client.get("/api/news", params={"search": "SEN", "limit": 1}).json()
    assert [item["title"] for item in searched["news"]] == ["Senas"]
    assert searched["total_count"] == 1


def test_news_for_unknown_artist_404(client: TestClient, admin_headers) -> None:
    response = client.post(
        "/api/news", json={"title": "X", "artist_id": "ghost"}, headers=admin_headers
    )

    assert response.status_code == 404
    assert client.get("/api/news").json()["total_count"] == 0


def test_deleting_artist_untags_news(
    client: TestClient, admin_headers, artist_id: str
) -> None:
    news = create_news(client, admin_headers, title="Apie Jazzu", artist_id=artist_id)

    client.delete(f"/api/artists/{artist_id}", headers=admin_headers)

    assert client.get(f"/api/news/{news['id']}").json()["artist_id"] is None


def test_news_songs_replace_in_order(
    client: TestClient, admin_headers, artist_id: str
) -> None:
    news = create_news(client, admin_headers, title="Savaitės dainos")
    track = client.post(
        "/api/tracks", json={"title": "Kaip tu", "artist_id": artist_id}, headers=admin_headers
    ).json()
    songs = [
        {"title": "Vasara", "artist_name": "Mia", "youtube_url": "https://youtu.be/v"},
        {"track_id": track["id"], "title": "Kaip tu", "artist_name": "Jazzu"},
    ]

    response = client.put(
        f"/api/news/{news['id']}/songs", json={"songs": songs}, headers=admin_headers
    )
    assert response.status_code == 200, response.text

    fetched = client.get(f"/api/news/{news['id']}/songs").json()["songs"]
    assert [(song["title"], song["track_id"]) for song in fetched] == [
        ("Vasara", None),
        ("Kaip tu", track["id"]),
    ]

    client.put(
        f"/api/news/{news['id']}/songs", json={"songs": songs[1:]}, headers=admin_headers
    )
    assert len(client.get(f"/api/news/{news['id']}/songs").json()["songs"]) == 1


def test_news_songs_unknown_track_422(client: TestClient, admin_headers) -> None:
    news = create_news(client, admin_headers, title="Dainos")

    response = client.put(
        f"/api/news/{news['id']}/songs",
        json={"songs": [{"track_id": "t404"}]},
        headers=admin_headers,
    )

    assert response.status_code == 422
    assert client.get(f"/api/news/{news['id']}/songs").json()["songs"] == []


def test_songs_of_missing_news_404(client: TestClient) -> None:
    assert client.get("/api/news/nope/songs").status_code == 404


def test_news_types(client: TestClient, admin_headers) -> None:
    response = client.post(
        "/api/news-types", json={"label": "Interviu"}, headers=admin_headers
    )
    assert response.status_code == 201, response.text
    assert response.json()["slug"] == "interviu"

    client.post("/api/news-types", json={"label": "Anonsai"}, headers=admin_headers)

    listing = client.get("/api/news-types").json()
    assert [item["label"] for item in listing] == ["Anonsai", "Interviu"]


@pytest.mark.parametrize("label", ["", "   ", "Interviu"])
def test_news_type_rejected(client: TestClient, admin_headers, label: str) -> None:
    client.post("/api/news-types", json={"label": "Interviu"}, headers=admin_headers)

    response = client.post(
        "/api/news-types", json={"label": label}, headers=admin_headers
    )

    assert response.status_code == 422


def test_news_writes_need_admin(client: TestClient, user_headers) -> None:
    assert (
        client.post("/api/news", json={"title": "X"}, headers=user_headers).status_code
        == 403
    )
    assert (
        client.post(
            "/api/news-types", json={"label": "X"}, headers=user_headers
        ).status_code
        == 403
    )

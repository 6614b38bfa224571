"""Tests for the media listing endpoints."""

from unittest.mock import patch

from soulscape.core.exceptions import StoreFailure


def _seed(storage):
    storage.put("soulscape/image/a/x.png", b"xx", "image/png")
    storage.put("soulscape/image/a/y.png", b"yyy", "image/png")
    storage.put("soulscape/image/b/z.png", b"z", "image/png")
    storage.put("soulscape/image/b/", b"", "application/x-directory")
    storage.put("soulscape/image/zero.png", b"", "image/png")
    storage.put("soulscape/video/v.mp4", b"vvvv", "video/mp4")


def test_list_images(client, memory_storage):
    """Test listing images skips markers and empty objects."""
    _seed(memory_storage)

    response = client.get("/api/v1/media", params={"type": "image"})

    assert response.status_code == 200
    data = response.json()
    assert [item["key"] for item in data["items"]] == [
        "soulscape/image/a/x.png",
        "soulscape/image/a/y.png",
        "soulscape/image/b/z.png",
    ]
    first = data["items"][0]
    assert first["cdnUrl"] == "https://cdn.example.com/soulscape/image/a/x.png"
    assert first["size"] == 2
    assert first["lastModified"].startswith("2024-01-01")
    assert data["nextToken"] is None


def test_list_follows_cursor(client, memory_storage, app):
    """Test following nextToken across small pages."""
    _seed(memory_storage)
    app.state.context.settings.LIST_PAGE_SIZE = 2

    keys = []
    params = {"type": "image"}
    while True:
        data = client.get("/api/v1/media", params=params).json()
        keys.extend(item["key"] for item in data["items"])
        if data["nextToken"] is None:
            break
        params["cursor"] = data["nextToken"]

    assert keys == [
        "soulscape/image/a/x.png",
        "soulscape/image/a/y.png",
        "soulscape/image/b/z.png",
    ]


def test_list_videos(client, memory_storage):
    """Test listing under the video prefix."""
    _seed(memory_storage)

    data = client.get("/api/v1/media", params={"type": "video"}).json()

    assert [item["key"] for item in data["items"]] == ["soulscape/video/v.mp4"]


def test_list_bad_type(client, memory_storage):
    """Test that an unknown type is a 400."""
    response = client.get("/api/v1/media", params={"type": "audio"})

    assert response.status_code == 400
    assert response.json()["detail"] == "type must be image or video."


def test_list_missing_type(client, memory_storage):
    """Test that a missing type is a 400."""
    assert client.get("/api/v1/media").status_code == 400


def test_list_store_failure(client, memory_storage):
    """Test that store failures are a 500."""
    with patch.object(memory_storage, "list", side_effect=StoreFailure("boom")):
        response = client.get("/api/v1/media", params={"type": "image"})

    assert response.status_code == 500
    assert response.json()["detail"] == "Failed to list objects."


def test_list_options(client):
    """Test bare OPTIONS on the listing endpoint."""
    assert client.options("/api/v1/media").status_code == 200


def test_media_tree(client, memory_storage):
    """Test the folder tree endpoint."""
    _seed(memory_storage)

    response = client.get("/api/v1/media/tree", params={"type": "image"})

    assert response.status_code == 200
    data = response.json()
    assert data["prefix"] == "soulscape/image/"
    folders = data["tree"]["children"]
    assert [folder["name"] for folder in folders] == ["a", "b"]
    assert [leaf["name"] for leaf in folders[0]["children"]] == ["x.png", "y.png"]
    assert [leaf["name"] for leaf in folders[1]["children"]] == ["z.png"]


def test_media_tree_bad_type(client, memory_storage):
    """Test that the tree endpoint validates the type."""
    assert client.get("/api/v1/media/tree", params={"type": "doc"}).status_code == 400

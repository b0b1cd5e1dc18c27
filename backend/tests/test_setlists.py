import pytest
from fastapi.testclient import TestClient

@pytest.fixture
def board_url(gig):
    return f"/api/gigs/{gig['id']}"

def first_set(client, board_url):
    return client.get(f"{board_url}/board").json()["sets"][0]

def test_get_board(client: TestClient, board_url, songs):
    response = client.get(f"{board_url}/board")
    assert response.status_code == 200
    data = response.json()
    assert [s["title"] for s in data["library"]] == ["Song A", "Song B", "Song C"]
    assert [s["name"] for s in data["sets"]] == ["Set 1"]
    assert data["drag"]["state"] == "idle"
    assert data["used_in"] == {}

def test_unknown_gig_board_is_404(client: TestClient):
    assert client.get("/api/gigs/nope/board").status_code == 404

def test_create_sets_up_to_cap(client: TestClient, board_url):
    for expected in ["Set 2", "Set 3", "Set 4", "Set 5"]:
        response = client.post(f"{board_url}/sets")
        assert response.status_code == 200
        assert response.json()["sets"][-1]["name"] == expected

    response = client.post(f"{board_url}/sets")
    assert response.status_code == 409
    assert response.json()["detail"] == "Maximum 5 sets allowed."
    assert len(client.get(f"{board_url}/board").json()["sets"]) == 5

def test_create_named_set(client: TestClient, board_url):
    response = client.post(f"{board_url}/sets", json={"name": "Encore"})
    assert response.json()["sets"][-1]["name"] == "Encore"

def test_rename_and_retag_set(client: TestClient, board_url):
    set_id = first_set(client, board_url)["id"]
    response = client.patch(f"{board_url}/sets/{set_id}", json={"name": "Opener", "status": "Final"})
    assert response.status_code == 200
    updated = response.json()["sets"][0]
    assert updated["name"] == "Opener"
    assert updated["status"] == "Final"

    assert client.patch(f"{board_url}/sets/nope", json={"name": "x"}).status_code == 404

def test_duplicate_and_delete_set(client: TestClient, board_url, songs):
    set_id = first_set(client, board_url)["id"]
    client.post(f"{board_url}/sets/{set_id}/songs", json={"song_ids": [songs[0]["id"]]})

    data = client.post(f"{board_url}/sets/{set_id}/duplicate").json()
    assert [s["name"] for s in data["sets"]] == ["Set 1", "Set 1 (Copy)"]
    assert data["duplicate_song_ids"] == [songs[0]["id"]]

    copy_id = data["sets"][1]["id"]
    data = client.delete(f"{board_url}/sets/{set_id}").json()
    assert [s["id"] for s in data["sets"]] == [copy_id]
    assert data["sets"][0]["order_index"] == 0

def test_clear_sets(client: TestClient, board_url, songs):
    set_id = first_set(client, board_url)["id"]
    client.post(f"{board_url}/sets/{set_id}/songs", json={"song_ids": [songs[0]["id"]]})
    client.post(f"{board_url}/sets")

    data = client.delete(f"{board_url}/sets").json()
    assert [s["name"] for s in data["sets"]] == ["Set 1"]
    assert data["sets"][0]["songs"] == []
    assert data["sets"][0]["id"] != set_id

def test_reorder_sets(client: TestClient, board_url):
    first = first_set(client, board_url)["id"]
    client.post(f"{board_url}/sets")
    data = client.post(f"{board_url}/sets/reorder", json={"from_index": 0, "to_index": 1}).json()
    assert data["sets"][1]["id"] == first
    assert [s["order_index"] for s in data["sets"]] == [0, 1]

def test_add_songs_at_index_and_reorder(client: TestClient, board_url, songs):
    set_id = first_set(client, board_url)["id"]
    client.post(f"{board_url}/sets/{set_id}/songs", json={"song_ids": [songs[0]["id"], songs[1]["id"]]})
    data = client.post(f"{board_url}/sets/{set_id}/songs", json={"song_ids": [songs[2]["id"]], "index": 0}).json()
    assert [s["title"] for s in data["sets"][0]["songs"]] == ["Song C", "Song A", "Song B"]

    data = client.post(f"{board_url}/sets/{set_id}/songs/reorder", json={"from_index": 0, "to_index": 2}).json()
    assert [s["title"] for s in data["sets"][0]["songs"]] == ["Song A", "Song B", "Song C"]

def test_add_unknown_song_is_404(client: TestClient, board_url):
    set_id = first_set(client, board_url)["id"]
    response = client.post(f"{board_url}/sets/{set_id}/songs", json={"song_ids": ["nope"]})
    assert response.status_code == 404

def test_note_and_remove_instance(client: TestClient, board_url, songs):
    set_id = first_set(client, board_url)["id"]
    data = client.post(f"{board_url}/sets/{set_id}/songs", json={"song_ids": [songs[0]["id"], songs[0]["id"]]}).json()
    first, second = [s["instance_id"] for s in data["sets"][0]["songs"]]
    assert first != second
    assert data["duplicate_song_ids"] == [songs[0]["id"]]

    data = client.patch(f"{board_url}/sets/{set_id}/songs/{second}", json={"notes": "slower"}).json()
    assert data["sets"][0]["songs"][1]["notes"] == "slower"

    data = client.delete(f"{board_url}/sets/{set_id}/songs/{first}").json()
    assert [s["instance_id"] for s in data["sets"][0]["songs"]] == [second]
    assert data["duplicate_song_ids"] == []

def test_move_between_sets(client: TestClient, board_url, songs):
    set_id = first_set(client, board_url)["id"]
    data = client.post(f"{board_url}/sets/{set_id}/songs", json={"song_ids": [songs[0]["id"], songs[1]["id"]]}).json()
    instance_id = data["sets"][0]["songs"][0]["instance_id"]
    target_id = client.post(f"{board_url}/sets").json()["sets"][1]["id"]

    data = client.post(f"{board_url}/move", json={
        "source_id": set_id, "target_id": target_id, "item_id": instance_id,
    }).json()
    assert [s["instance_id"] for s in data["sets"][1]["songs"]] == [instance_id]
    assert len(data["sets"][0]["songs"]) == 1
    assert data["used_in"][songs[0]["id"]] == [{"set_name": "Set 2", "set_index": 1}]

def test_move_unknown_item_is_soft_miss(client: TestClient, board_url):
    set_id = first_set(client, board_url)["id"]
    response = client.post(f"{board_url}/move", json={"source_id": set_id, "target_id": "library", "item_id": "nope"})
    assert response.status_code == 200
    assert response.json()["signal"] == "NOT_FOUND"

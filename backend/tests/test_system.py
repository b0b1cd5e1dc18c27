from fastapi.testclient import TestClient

def test_root(client: TestClient):
    response = client.get("/")
    assert response.status_code == 200
    assert "SetlistFlow" in response.json()["message"]

def test_health_check(client: TestClient):
    """APIが生存しているか確認"""
    response = client.get("/api/")
    assert response.status_code == 200
    data = response.json()
    assert data["status"] == "ok"
    assert "duckdb_version" in data
    assert data["schema_version"] == 1

def test_dashboard_stats_empty(client: TestClient):
    response = client.get("/api/dashboard")
    assert response.status_code == 200
    data = response.json()
    assert data["total_songs"] == 0
    assert data["total_gigs"] == 0

def test_dashboard_stats_with_data(client: TestClient, band, gig, songs):
    set_id = client.get(f"/api/gigs/{gig['id']}/board").json()["sets"][0]["id"]
    client.post(f"/api/gigs/{gig['id']}/sets/{set_id}/songs", json={"song_ids": [songs[0]["id"]]})
    client.delete(f"/api/songs/{songs[0]['id']}")

    data = client.get("/api/dashboard").json()
    assert data["total_bands"] == 1
    assert data["total_songs"] == 3
    assert data["archived_songs"] == 1
    assert data["active_songs"] == 2
    assert data["total_sets"] == 1
    assert data["placed_instances"] == 1

def test_startup_seeds_demo_data_when_enabled(session, mocker):
    from main import app
    from config import settings

    mocker.patch.object(settings, "SEED_DEMO_DATA", True)
    with TestClient(app) as client:
        data = client.get("/api/dashboard").json()
    assert data["total_bands"] == 1
    assert data["total_gigs"] == 1

def test_cors_origins_cover_frontend_and_api_ports(mocker):
    from config import settings

    mocker.patch.object(settings, "CORS_EXTRA_ORIGINS", ["https://band.example"])
    origins = settings.cors_origins()
    assert f"http://localhost:{settings.FRONTEND_PORT}" in origins
    assert f"http://127.0.0.1:{settings.SETLISTFLOW_PORT}" in origins
    assert origins[-1] == "https://band.example"

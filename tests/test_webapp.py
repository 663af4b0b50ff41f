"""Tests for the HTTP surface."""

from __future__ import annotations

import pytest
from fastapi.testclient import TestClient

from gigsim.models import Gig
from gigsim.settings import Settings
from gigsim.store import MemoryGigStore
from gigsim.webapp import create_app

from tests.conftest import gig_rows


@pytest.fixture
def client():
    store = MemoryGigStore().add(
        *gig_rows(),
        Gig(id="g2", band_id="b1", venue_id="v1", setlist_id="sl1", promoter_id="p1", city_id="c1"),
    )
    app = create_app(store=store, settings=Settings(rng_seed=7))
    with TestClient(app) as c:
        yield c


def _song_body(position: int = 1, song_id: str = "s1") -> dict:
    return {
        "setlist_id": "sl1", "venue_id": "v1", "position": position,
        "song_id": song_id, "promoter_id": "p1", "city_id": "c1",
    }


def test_health(client):
    assert client.get("/health").json() == {"status": "ok"}


def test_perform_song(client):
    resp = client.post("/gigs/g1/positions", json=_song_body())
    assert resp.status_code == 200
    perf = resp.json()["performance"]
    assert perf["score"] == 25.0
    assert perf["crowd_response"] == "ecstatic"
    assert perf["item_type"] == "song"
    assert perf["title"] == "Song 1"
    assert "base_score" in perf["breakdown"]


def test_perform_item(client):
    body = {"setlist_id": "sl1", "venue_id": "v1", "position": 6, "performance_item_id": "i1"}
    resp = client.post("/gigs/g1/positions", json=body)
    assert resp.status_code == 200
    assert resp.json()["performance"]["item_type"] == "performance_item"


def test_unknown_gig_is_404(client):
    resp = client.post("/gigs/nope/positions", json=_song_body())
    assert resp.status_code == 404
    assert "Gig not found" in resp.json()["error"]


def test_unknown_song_is_404(client):
    resp = client.post("/gigs/g1/positions", json=_song_body(song_id="ghost"))
    assert resp.status_code == 404
    assert client.get("/gigs/g1/performances").json()["performances"] == []


def test_repeat_position_is_409(client):
    assert client.post("/gigs/g1/positions", json=_song_body()).status_code == 200
    assert client.post("/gigs/g1/positions", json=_song_body()).status_code == 409


@pytest.mark.parametrize("body", [
    {"setlist_id": "sl1", "venue_id": "v1", "position": 1},
    {"setlist_id": "sl1", "venue_id": "v1", "position": 1, "song_id": "s1", "performance_item_id": "i1"},
    {"setlist_id": "sl1", "venue_id": "v1", "position": 0, "song_id": "s1"},
])
def test_bad_request_is_422(client, body):
    assert client.post("/gigs/g1/positions", json=body).status_code == 422


def test_listings(client):
    for position in (1, 2):
        client.post("/gigs/g1/positions", json=_song_body(position, f"s{position}"))
    performances = client.get("/gigs/g1/performances").json()
    assert performances["gig_id"] == "g1"
    assert [p["position"] for p in performances["performances"]] == [1, 2]

    events = client.get("/gigs/g1/stage-events").json()
    assert events["gig_id"] == "g1"
    assert all(e["position"] in (1, 2) for e in events["stage_events"])


def test_seeded_gigs_get_their_own_swing(client):
    first = client.post("/gigs/g1/positions", json=_song_body()).json()["performance"]
    second = client.post("/gigs/g2/positions", json=_song_body()).json()["performance"]
    assert first["breakdown"]["random_factor"] != second["breakdown"]["random_factor"]

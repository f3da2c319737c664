import pytest
from fastapi.testclient import TestClient

from ttlive.main import app

BASE = "/api/v0"


@pytest.fixture()
def client(fresh_db):
    with TestClient(app) as client:
        yield client


def _player(client, name, category="Senior"):
    resp = client.post(f"{BASE}/players", json={"name": name, "category": category})
    assert resp.status_code == 201, resp.text
    return resp.json()["id"]


def _team(client, name, player_ids):
    resp = client.post(f"{BASE}/teams", json={"name": name, "playerIds": player_ids})
    assert resp.status_code == 201, resp.text
    return resp.json()["id"]


def _individual(client, best_of=3):
    p1 = _player(client, "Alice")
    p2 = _player(client, "Bob")
    resp = client.post(
        f"{BASE}/matches",
        json={
            "kind": "Individual",
            "side1PlayerIds": [p1],
            "side2PlayerIds": [p2],
            "bestOf": best_of,
        },
    )
    assert resp.status_code == 201, resp.text
    return resp.json(), p1, p2


def _points(client, mid, sides):
    data = None
    for side in sides:
        resp = client.post(f"{BASE}/matches/{mid}/points", json={"scoringSide": side})
        assert resp.status_code == 200, resp.text
        data = resp.json()
    return data


def _start(client, mid, index=0, side1=(), side2=(), server=1):
    return client.post(
        f"{BASE}/matches/{mid}/encounters",
        json={
            "encounterIndex": index,
            "side1PlayerIds": list(side1),
            "side2PlayerIds": list(side2),
            "initialServer": server,
        },
    )


def test_create_individual_match(client):
    match, p1, p2 = _individual(client)

    assert match["status"] == "Upcoming"
    assert match["setsToWin"] == 2
    assert match["side1PlayerIds"] == [p1]
    assert match["score"]["shape"] == "series"
    assert match["historyLength"] == 0


def test_individual_best_of_three_over_http(client):
    match, p1, _ = _individual(client)
    mid = match["id"]

    resp = _start(client, mid)
    assert resp.status_code == 200, resp.text
    assert resp.json()["status"] == "Live"
    assert resp.json()["startTime"] is not None

    data = _points(client, mid, [1] * 11)
    assert data["lastResult"] == "game"
    _points(client, mid, [1] * 9 + [2] * 11)
    data = _points(client, mid, [2] * 9 + [1] * 11)

    assert data["lastResult"] == "match"
    assert data["status"] == "Finished"
    assert data["winnerSide"] == 1
    assert data["winnerPlayerId"] == p1
    assert data["score"]["setsWon"] == {"side1": 2, "side2": 1}
    assert data["endTime"] is not None

    resp = client.post(f"{BASE}/matches/{mid}/points", json={"scoringSide": 1})
    assert resp.status_code == 409
    assert resp.json()["code"] == "invalid_state"


def test_undo_reverts_last_point_and_reopens(client):
    match, _, _ = _individual(client, best_of=1)
    mid = match["id"]
    _start(client, mid)

    before = _points(client, mid, [1] * 10 + [2])
    finished = _points(client, mid, [1])
    assert finished["status"] == "Finished"

    resp = client.post(f"{BASE}/matches/{mid}/undo")
    assert resp.status_code == 200, resp.text
    data = resp.json()
    assert data["status"] == "Live"
    assert data["score"] == before["score"]
    assert data["historyLength"] == before["historyLength"]
    assert data["winnerSide"] is None
    assert data["endTime"] is None


def test_undo_without_history(client):
    match, _, _ = _individual(client)
    mid = match["id"]
    _start(client, mid)

    resp = client.post(f"{BASE}/matches/{mid}/undo")

    assert resp.status_code == 409
    assert resp.headers["content-type"].startswith("application/problem+json")
    assert resp.json()["code"] == "no_history"
    assert client.get(f"{BASE}/matches/{mid}").json()["status"] == "Live"


def test_invalid_scoring_side(client):
    match, _, _ = _individual(client)
    _start(client, match["id"])

    resp = client.post(f"{BASE}/matches/{match['id']}/points", json={"scoringSide": 3})

    assert resp.status_code == 400
    assert resp.json()["code"] == "validation_error"


def test_change_length_and_cancel(client):
    match, _, _ = _individual(client)
    mid = match["id"]

    resp = client.put(f"{BASE}/matches/{mid}/length", json={"bestOf": 5})
    assert resp.status_code == 200, resp.text
    assert resp.json()["setsToWin"] == 3

    resp = client.post(f"{BASE}/matches/{mid}/cancel")
    assert resp.json()["status"] == "Cancelled"

    resp = _start(client, mid)
    assert resp.status_code == 409


def test_delete_only_upcoming(client):
    match, _, _ = _individual(client)
    mid = match["id"]
    _start(client, mid)

    resp = client.delete(f"{BASE}/matches/{mid}")
    assert resp.status_code == 409

    resp = client.get(f"{BASE}/matches/missing")
    assert resp.status_code == 404
    assert resp.json()["code"] == "match_not_found"


def test_create_rejects_wrong_player_count(client):
    p1 = _player(client, "Cara")
    resp = client.post(
        f"{BASE}/matches",
        json={"kind": "Dual", "side1PlayerIds": [p1], "side2PlayerIds": [], "setsToWin": 2},
    )

    assert resp.status_code == 400
    assert resp.json()["code"] == "validation_error"


def test_create_rejects_bad_best_of(client):
    resp = client.post(
        f"{BASE}/matches",
        json={"kind": "Individual", "side1PlayerIds": ["a"], "side2PlayerIds": ["b"], "bestOf": 4},
    )

    assert resp.status_code == 400


def test_list_filters_by_status_and_kind(client):
    match, _, _ = _individual(client)
    _start(client, match["id"])

    live = client.get(f"{BASE}/matches", params={"status": "Live"}).json()
    upcoming = client.get(f"{BASE}/matches", params={"status": "Upcoming"}).json()
    teams = client.get(f"{BASE}/matches", params={"kind": "Team"}).json()

    assert [m["id"] for m in live] == [match["id"]]
    assert upcoming == []
    assert teams == []


def _team_match(client, **overrides):
    a = [_player(client, f"Team A {i}") for i in range(1, 5)]
    b = [_player(client, f"Team B {i}") for i in range(1, 5)]
    t1 = _team(client, "Aces", a)
    t2 = _team(client, "Blades", b)
    body = {
        "kind": "Team",
        "team1Id": t1,
        "team2Id": t2,
        "subType": "Set",
        "encounterFormat": "Single",
        "numberOfEncounters": 4,
    }
    body.update(overrides)
    resp = client.post(f"{BASE}/matches", json=body)
    assert resp.status_code == 201, resp.text
    return resp.json(), a, b


def test_team_set_tiebreaker_flow(client):
    match, a, b = _team_match(client)
    mid = match["id"]
    assert match["maxEncountersPerPlayer"] == 2
    assert len(match["score"]["encounters"]) == 4

    for index, winner in enumerate([1, 2, 1, 2]):
        resp = _start(client, mid, index, [a[index]], [b[index]])
        assert resp.status_code == 200, resp.text
        assert resp.json()["historyLength"] == 0
        data = _points(client, mid, [winner] * 11)

    assert data["status"] == "AwaitingTiebreakerSetup"
    assert data["score"]["encountersWon"] == {"side1": 2, "side2": 2}

    resp = _start(client, mid, 4, [a[0]], [b[1]], server=2)
    assert resp.status_code == 200, resp.text
    assert resp.json()["score"]["encounters"][4]["tiebreaker"] is True

    data = _points(client, mid, [1] * 11)
    assert data["status"] == "Finished"
    assert data["winnerSide"] == 1


def test_team_set_rotation_cap_over_http(client):
    match, a, b = _team_match(client, maxEncountersPerPlayer=1, numberOfEncounters=3)
    mid = match["id"]
    _start(client, mid, 0, [a[0]], [b[0]])
    _points(client, mid, [1] * 11)
    before = client.get(f"{BASE}/matches/{mid}").json()

    resp = _start(client, mid, 1, [a[0]], [b[1]])

    assert resp.status_code == 400
    assert resp.json()["code"] == "rotation_violation"
    after = client.get(f"{BASE}/matches/{mid}").json()
    assert after["score"] == before["score"]
    assert after["status"] == "AwaitingEncounterSetup"


def test_team_relay_to_thirty(client):
    match, a, b = _team_match(
        client,
        subType="Relay",
        numberOfEncounters=None,
        numberOfLegs=3,
        pointsPerLeg=10,
    )
    mid = match["id"]

    for leg in range(3):
        resp = _start(client, mid, leg, [a[leg]], [b[leg]])
        assert resp.status_code == 200, resp.text
        data = _points(client, mid, [1] * 10)

    assert data["status"] == "Finished"
    assert data["winnerSide"] == 1
    assert data["score"]["cumulativeScore"] == {"side1": 30, "side2": 0}


def test_team_match_needs_known_teams(client):
    resp = client.post(
        f"{BASE}/matches",
        json={
            "kind": "Team",
            "team1Id": "nope",
            "team2Id": "nada",
            "subType": "Set",
            "encounterFormat": "Single",
            "numberOfEncounters": 3,
        },
    )

    assert resp.status_code == 404
    assert resp.json()["code"] == "team_not_found"


def test_point_entry_is_rate_limited(client, monkeypatch):
    from ttlive import ratelimit

    match, _, _ = _individual(client)
    mid = match["id"]
    _start(client, mid)
    monkeypatch.setenv("DISABLE_RATE_LIMITS", "false")
    monkeypatch.setattr(ratelimit, "SCORE_RATE_LIMIT", "2/minute")

    try:
        codes = [
            client.post(f"{BASE}/matches/{mid}/points", json={"scoringSide": 1}).status_code
            for _ in range(3)
        ]
    finally:
        ratelimit.limiter.reset()

    assert codes == [200, 200, 429]
    assert client.get(f"{BASE}/matches/{mid}").json()["historyLength"] == 2


def test_team_set_rosters_must_cover_a_tiebreaker(client):
    a = [_player(client, f"Short A {i}") for i in range(1, 3)]
    b = [_player(client, f"Short B {i}") for i in range(1, 3)]
    body = {
        "kind": "Team",
        "team1Id": _team(client, "Short A", a),
        "team2Id": _team(client, "Short B", b),
        "subType": "Set",
        "encounterFormat": "Single",
        "numberOfEncounters": 4,
    }

    resp = client.post(f"{BASE}/matches", json=body)

    assert resp.status_code == 400
    assert resp.json()["code"] == "validation_error"
    assert client.get(f"{BASE}/matches").json() == []

    body["numberOfEncounters"] = 3
    assert client.post(f"{BASE}/matches", json=body).status_code == 201


def test_undo_reopens_finished_encounter(client):
    match, a, b = _team_match(client)
    mid = match["id"]
    _start(client, mid, 0, [a[0]], [b[0]])
    before = _points(client, mid, [1] * 10)
    data = _points(client, mid, [1])
    assert data["status"] == "AwaitingEncounterSetup"
    assert data["score"]["encountersWon"] == {"side1": 1, "side2": 0}

    resp = client.post(f"{BASE}/matches/{mid}/undo")

    assert resp.status_code == 200, resp.text
    data = resp.json()
    assert data["status"] == "Live"
    assert data["score"] == before["score"]
    assert data["score"]["encounters"][0]["status"] == "Live"
    assert data["score"]["encountersWon"] == {"side1": 0, "side2": 0}
    assert data["score"]["currentGame"] == {"side1": 10, "side2": 0}

    data = _points(client, mid, [2])
    assert data["status"] == "Live"
    assert data["score"]["currentGame"] == {"side1": 10, "side2": 1}


def test_undo_reopens_finished_relay_leg(client):
    match, a, b = _team_match(
        client,
        subType="Relay",
        numberOfEncounters=None,
        numberOfLegs=3,
        pointsPerLeg=10,
    )
    mid = match["id"]
    _start(client, mid, 0, [a[0]], [b[0]])
    before = _points(client, mid, [1] * 9 + [2] * 3)
    data = _points(client, mid, [1])
    assert data["status"] == "AwaitingEncounterSetup"
    assert data["score"]["legs"][0]["winner"] == 1

    resp = client.post(f"{BASE}/matches/{mid}/undo")

    assert resp.status_code == 200, resp.text
    data = resp.json()
    assert data["status"] == "Live"
    assert data["score"] == before["score"]
    assert data["score"]["legs"][0]["status"] == "Live"
    assert data["score"]["legs"][0]["endScore"] is None
    assert data["score"]["cumulativeScore"] == {"side1": 9, "side2": 3}

    data = _points(client, mid, [2])
    assert data["status"] == "Live"
    assert data["score"]["cumulativeScore"] == {"side1": 9, "side2": 4}

"""
tests/test_api_routes.py — FastAPI Route Integration Tests
============================================================
Drives the HTTP surface with the FastAPI TestClient against an in-memory
SQLite engine.

These tests verify:
- Auth guards on admin endpoints
- Status codes for missing rows, conflicts and bad input
- Response shape of the main community, event and messaging flows
"""

from __future__ import annotations

import jwt
import pytest

from conftest import OAKLAND, SACRAMENTO, SF
from triplace.api.deps import JWT_ALGORITHM, JWT_SECRET


@pytest.fixture
def non_admin_token():
    return jwt.encode(
        {"sub": "67890", "username": "RegularUser", "is_admin": False},
        JWT_SECRET,
        algorithm=JWT_ALGORITHM,
    )


def _auth(token: str) -> dict:
    return {"Authorization": f"Bearer {token}"}


def _create_user(client, handle: str, **extra) -> dict:
    resp = client.post("/api/users", json={
        "firebase_uid": f"uid-{handle}",
        "email": f"{handle}@example.com",
        "name": handle.title(),
        **extra,
    })
    assert resp.status_code == 201, resp.text
    return resp.json()


def _create_community(client, name: str, category: str = "wellness", **extra) -> dict:
    resp = client.post("/api/communities", json={
        "name": name, "description": f"{name} meetups", "category": category, **extra,
    })
    assert resp.status_code == 201, resp.text
    return resp.json()


# ===========================================================================
# Ops endpoints
# ===========================================================================
class TestOpsEndpoints:
    def test_health_healthy(self, client):
        resp = client.get("/api/health")
        assert resp.status_code == 200
        body = resp.json()
        assert body["status"] == "healthy"
        assert "timestamp" in body

    def test_health_detailed(self, client):
        body = client.get("/api/health/detailed").json()
        assert body["checks"] == {"database": "pass", "storage": "pass"}
        assert body["version"] == "0.1.0"

    def test_version(self, client):
        assert client.get("/api/version").json() == {"version": "0.1.0", "name": "TriPlace API"}


# ===========================================================================
# Auth guards — admin endpoints reject unauthenticated/non-admin callers
# ===========================================================================
class TestAdminAuthGuards:
    def test_get_rejects_no_auth(self, client):
        assert client.get("/api/admin/logs").status_code == 401

    def test_get_rejects_invalid_token(self, client):
        resp = client.get("/api/admin/logs", headers={"Authorization": "Bearer invalid"})
        assert resp.status_code == 401

    def test_get_rejects_non_admin(self, client, non_admin_token):
        resp = client.get("/api/admin/logs", headers=_auth(non_admin_token))
        assert resp.status_code == 403

    def test_seed_rejects_no_auth(self, client):
        assert client.post("/api/admin/seed").status_code == 401

    def test_level_rejects_non_admin(self, client, non_admin_token):
        resp = client.put(
            "/api/admin/logs/level", json={"level": "DEBUG"}, headers=_auth(non_admin_token),
        )
        assert resp.status_code == 403


class TestAdminOperations:
    def test_logs_shape(self, client, admin_token):
        resp = client.get("/api/admin/logs", headers=_auth(admin_token))
        assert resp.status_code == 200
        body = resp.json()
        assert set(body) == {"entries", "total", "capture_level", "valid_levels"}
        assert body["total"] == len(body["entries"])

    def test_change_level(self, client, admin_token):
        resp = client.put(
            "/api/admin/logs/level", json={"level": "warning"}, headers=_auth(admin_token),
        )
        assert resp.status_code == 200
        assert resp.json() == {"level": "WARNING"}
        client.put("/api/admin/logs/level", json={"level": "DEBUG"}, headers=_auth(admin_token))

    def test_change_level_invalid(self, client, admin_token):
        resp = client.put(
            "/api/admin/logs/level", json={"level": "LOUD"}, headers=_auth(admin_token),
        )
        assert resp.status_code == 400

    def test_seed_is_idempotent(self, client, admin_token):
        first = client.post("/api/admin/seed", headers=_auth(admin_token)).json()
        second = client.post("/api/admin/seed", headers=_auth(admin_token)).json()
        assert first["inserted"] == {"communities": 2, "events": 2}
        assert second["inserted"] == {"communities": 0, "events": 0}
        assert len(client.get("/api/communities").json()) == 2


# ===========================================================================
# Users & onboarding
# ===========================================================================
class TestUsers:
    def test_create_and_fetch(self, client):
        user = _create_user(client, "alice")
        assert client.get(f"/api/users/{user['id']}").json()["email"] == "alice@example.com"
        assert client.get("/api/users/firebase/uid-alice").json()["id"] == user["id"]

    def test_duplicate_is_conflict(self, client):
        _create_user(client, "alice")
        resp = client.post("/api/users", json={
            "firebase_uid": "uid-alice", "email": "x@example.com", "name": "X",
        })
        assert resp.status_code == 409

    def test_missing_user_404(self, client):
        assert client.get("/api/users/404").status_code == 404
        assert client.patch("/api/users/404", json={"bio": "x"}).status_code == 404

    def test_update_and_location(self, client):
        user = _create_user(client, "alice")
        resp = client.patch(f"/api/users/{user['id']}", json={"bio": "Climber"})
        assert resp.json()["bio"] == "Climber"

        resp = client.patch("/api/users/current/location", json={
            "user_id": user["id"], "latitude": SF[0], "longitude": SF[1], "location": "SF",
        })
        assert resp.status_code == 200
        assert resp.json()["latitude"] == SF[0]

    def test_location_out_of_range(self, client):
        user = _create_user(client, "alice")
        resp = client.patch("/api/users/current/location", json={
            "user_id": user["id"], "latitude": 120, "longitude": 0,
        })
        assert resp.status_code == 422

    def test_status(self, client):
        user = _create_user(client, "alice")
        resp = client.post(f"/api/users/{user['id']}/status", json={"is_online": True})
        assert resp.json()["is_online"] is True

    def test_onboarding(self, client):
        user = _create_user(client, "alice")
        resp = client.post("/api/onboarding/complete", json={
            "user_id": user["id"], "interests": ["yoga"], "quiz_answers": {"q1": "a"},
        })
        assert resp.status_code == 200
        body = resp.json()
        assert body["onboarding_completed"] is True
        assert body["interests"] == ["yoga"]

    def test_onboarding_requires_interests(self, client):
        user = _create_user(client, "alice")
        resp = client.post("/api/onboarding/complete", json={"user_id": user["id"], "interests": []})
        assert resp.status_code == 422


# ===========================================================================
# Communities
# ===========================================================================
class TestCommunities:
    def test_recommended(self, client):
        user = _create_user(client, "alice")
        yoga = _create_community(client, "Yoga Circle")
        _create_community(client, "Chess Club", category="games")

        resp = client.get("/api/communities/recommended", params={
            "interests": "yoga, hiking", "userId": user["id"],
        })
        assert resp.status_code == 200
        body = resp.json()
        assert [c["id"] for c in body] == [yoga["id"]]
        assert body[0]["match_score"] > 0.3

    def test_recommended_requires_interests(self, client):
        resp = client.get("/api/communities/recommended", params={"interests": " , "})
        assert resp.status_code == 400

    def test_join_rotation_reports_dropped(self, client):
        user = _create_user(client, "alice")
        communities = [_create_community(client, f"C{i}") for i in range(6)]
        for c in communities[:5]:
            resp = client.post(f"/api/communities/{c['id']}/join", json={"user_id": user["id"]})
            assert resp.json()["dropped_community"] is None

        resp = client.post(
            f"/api/communities/{communities[5]['id']}/join", json={"user_id": user["id"]},
        )
        assert resp.status_code == 200
        body = resp.json()
        assert body["membership"]["community_id"] == communities[5]["id"]
        assert body["dropped_community"]["id"] == communities[0]["id"]
        assert len(client.get(f"/api/users/{user['id']}/communities").json()) == 5

        feed_types = [i["type"] for i in client.get(f"/api/users/{user['id']}/activity").json()]
        assert "community_dropped" in feed_types

    def test_join_missing_community(self, client):
        user = _create_user(client, "alice")
        resp = client.post("/api/communities/404/join", json={"user_id": user["id"]})
        assert resp.status_code == 404

    def test_leave(self, client):
        user = _create_user(client, "alice")
        c = _create_community(client, "A")
        client.post(f"/api/communities/{c['id']}/join", json={"user_id": user["id"]})
        assert client.post(
            f"/api/communities/{c['id']}/leave", json={"user_id": user["id"]},
        ).status_code == 200
        assert client.post(
            f"/api/communities/{c['id']}/leave", json={"user_id": user["id"]},
        ).status_code == 404

    def test_dynamic_members(self, client):
        me = _create_user(client, "me", interests=["yoga", "hiking"], latitude=SF[0], longitude=SF[1])
        other = _create_user(
            client, "bob", interests=["yoga", "hiking"], latitude=OAKLAND[0], longitude=OAKLAND[1],
        )
        c = _create_community(client, "A")
        resp = client.get(f"/api/communities/{c['id']}/dynamic-members", params={
            "latitude": SF[0], "longitude": SF[1], "interests": "yoga,hiking",
            "userId": me["id"], "expand": True,
        })
        assert resp.status_code == 200
        body = resp.json()
        assert [u["id"] for u in body["members"]] == [other["id"]]
        assert body["radius_used"] == 50.0
        assert "email" not in body["members"][0]

    def test_community_chat_and_resonance(self, client):
        alice = _create_user(client, "alice")
        bob = _create_user(client, "bob")
        c = _create_community(client, "A")
        resp = client.post(f"/api/communities/{c['id']}/messages", json={
            "sender_id": alice["id"], "content": "hello",
        })
        assert resp.status_code == 201
        msg_id = resp.json()["id"]

        url = f"/api/community-messages/{msg_id}/resonate"
        assert client.post(url, json={"user_id": bob["id"]}).json() == {"resonated": True}
        assert client.post(url, json={"user_id": bob["id"]}).json() == {"resonated": False}

        messages = client.get(f"/api/communities/{c['id']}/messages").json()
        assert messages[0]["resonate_count"] == 1
        assert messages[0]["sender"]["id"] == alice["id"]

    def test_missing_community_404(self, client):
        assert client.get("/api/communities/404").status_code == 404
        assert client.get("/api/communities/404/members").status_code == 404
        assert client.post(
            "/api/communities/404/messages", json={"sender_id": 1, "content": "x"},
        ).status_code == 404


# ===========================================================================
# Events
# ===========================================================================
class TestEvents:
    EVENT = {
        "title": "Open Mic",
        "description": "Bring an instrument",
        "organizer": "Jam Co",
        "date": "2099-01-01T19:00:00Z",
        "location": "The Hall",
        "address": "1 Main St",
        "category": "music",
        "latitude": OAKLAND[0],
        "longitude": OAKLAND[1],
    }

    def test_create_and_register(self, client):
        user = _create_user(client, "alice")
        event = client.post("/api/events", json=self.EVENT)
        assert event.status_code == 201
        event_id = event.json()["id"]
        assert event.json()["revenue_share_percentage"] == 7

        resp = client.post(f"/api/events/{event_id}/register", json={"user_id": user["id"]})
        assert resp.status_code == 200
        assert resp.json()["status"] == "registered"
        assert client.get(f"/api/events/{event_id}").json()["attendee_count"] == 1

        attended = client.post(f"/api/events/{event_id}/mark-attended", json={"user_id": user["id"]})
        assert attended.json()["status"] == "attended"
        attendees = client.get(f"/api/events/{event_id}/attendees").json()
        assert [a["attendance_status"] for a in attendees] == ["attended"]

    def test_register_bad_status(self, client):
        user = _create_user(client, "alice")
        event_id = client.post("/api/events", json=self.EVENT).json()["id"]
        resp = client.post(
            f"/api/events/{event_id}/register", json={"user_id": user["id"], "status": "maybe"},
        )
        assert resp.status_code == 400

    def test_register_missing_event(self, client):
        user = _create_user(client, "alice")
        resp = client.post("/api/events/404/register", json={"user_id": user["id"]})
        assert resp.status_code == 404

    def test_nearby_and_upcoming(self, client):
        event_id = client.post("/api/events", json=self.EVENT).json()["id"]
        nearby = client.get("/api/events/nearby", params={"latitude": SF[0], "longitude": SF[1]})
        assert [e["id"] for e in nearby.json()] == [event_id]
        assert [e["id"] for e in client.get("/api/events/upcoming").json()] == [event_id]


# ===========================================================================
# Messages & kudos
# ===========================================================================
class TestMessagesAndKudos:
    def test_direct_messages(self, client):
        alice = _create_user(client, "alice")
        bob = _create_user(client, "bob")
        sent = client.post("/api/messages", json={
            "sender_id": alice["id"], "receiver_id": bob["id"], "content": "hi",
        })
        assert sent.status_code == 201

        convo = client.get("/api/messages/conversation", params={
            "user1Id": bob["id"], "user2Id": alice["id"],
        }).json()
        assert [m["content"] for m in convo] == ["hi"]

        convos = client.get(f"/api/users/{bob['id']}/conversations").json()
        assert convos[0]["user"]["id"] == alice["id"]
        assert convos[0]["unread_count"] == 1

        assert client.patch(f"/api/messages/{sent.json()['id']}/read").status_code == 200
        assert client.patch("/api/messages/404/read").status_code == 404

    def test_self_message_rejected(self, client):
        alice = _create_user(client, "alice")
        resp = client.post("/api/messages", json={
            "sender_id": alice["id"], "receiver_id": alice["id"], "content": "hi",
        })
        assert resp.status_code == 400

    def test_kudos(self, client):
        alice = _create_user(client, "alice")
        bob = _create_user(client, "bob")
        resp = client.post("/api/kudos", json={
            "giver_id": alice["id"], "receiver_id": bob["id"], "message": "Thanks!",
        })
        assert resp.status_code == 201
        assert client.get(f"/api/kudos/{resp.json()['id']}").json()["message"] == "Thanks!"
        received = client.get(f"/api/users/{bob['id']}/kudos/received").json()
        assert len(received) == 1
        feed = client.get(f"/api/users/{bob['id']}/activity").json()
        assert feed[0]["type"] == "kudos_received"

    def test_kudos_errors(self, client):
        alice = _create_user(client, "alice")
        self_kudos = client.post("/api/kudos", json={
            "giver_id": alice["id"], "receiver_id": alice["id"],
        })
        assert self_kudos.status_code == 400
        missing = client.post("/api/kudos", json={"giver_id": alice["id"], "receiver_id": 404})
        assert missing.status_code == 404
        assert client.get("/api/kudos/404").status_code == 404


# ===========================================================================
# Conflicts & missing rows on write paths
# ===========================================================================
class TestWriteErrors:
    def test_update_to_taken_email_is_conflict(self, client):
        alice = _create_user(client, "alice")
        _create_user(client, "bob")
        resp = client.patch(f"/api/users/{alice['id']}", json={"email": "bob@example.com"})
        assert resp.status_code == 409
        assert client.get(f"/api/users/{alice['id']}").json()["email"] == "alice@example.com"

    def test_message_to_missing_user_404(self, client):
        alice = _create_user(client, "alice")
        resp = client.post("/api/messages", json={
            "sender_id": alice["id"], "receiver_id": 9999, "content": "hi",
        })
        assert resp.status_code == 404

    def test_community_message_from_missing_user_404(self, client):
        c = _create_community(client, "A")
        resp = client.post(f"/api/communities/{c['id']}/messages", json={
            "sender_id": 9999, "content": "hello",
        })
        assert resp.status_code == 404

    def test_resonate_missing_user_or_message_404(self, client):
        alice = _create_user(client, "alice")
        c = _create_community(client, "A")
        msg_id = client.post(f"/api/communities/{c['id']}/messages", json={
            "sender_id": alice["id"], "content": "hello",
        }).json()["id"]

        resp = client.post(f"/api/community-messages/{msg_id}/resonate", json={"user_id": 9999})
        assert resp.status_code == 404
        resp = client.post("/api/community-messages/9999/resonate", json={"user_id": alice["id"]})
        assert resp.status_code == 404


# ===========================================================================
# Membership listings & dynamic member expansion
# ===========================================================================
class TestMembershipViews:
    def test_active_communities_most_recent_first(self, client):
        user = _create_user(client, "alice")
        a = _create_community(client, "A")
        b = _create_community(client, "B")
        for c in (a, b):
            client.post(f"/api/communities/{c['id']}/join", json={"user_id": user["id"]})
        resp = client.post(f"/api/communities/{a['id']}/activity", json={"user_id": user["id"]})
        assert resp.status_code == 200

        rows = client.get(f"/api/users/{user['id']}/active-communities").json()
        assert [r["id"] for r in rows] == [a["id"], b["id"]]
        assert [r["activity_score"] for r in rows] == [2, 1]

    def test_active_communities_skip_deactivated(self, client):
        user = _create_user(client, "alice")
        a = _create_community(client, "A")
        b = _create_community(client, "B")
        for c in (a, b):
            client.post(f"/api/communities/{c['id']}/join", json={"user_id": user["id"]})
        client.patch(f"/api/communities/{b['id']}", json={"is_active": False})

        rows = client.get(f"/api/users/{user['id']}/active-communities").json()
        assert [r["id"] for r in rows] == [a["id"]]

    def test_dynamic_members_expand_to_wider_radius(self, client):
        far = _create_user(
            client, "sac", interests=["yoga", "hiking"],
            latitude=SACRAMENTO[0], longitude=SACRAMENTO[1],
        )
        c = _create_community(client, "A")
        params = {"latitude": SF[0], "longitude": SF[1], "interests": "yoga,hiking"}

        narrow = client.get(f"/api/communities/{c['id']}/dynamic-members", params=params).json()
        assert narrow == {"members": [], "radius_used": 50.0}

        wide = client.get(
            f"/api/communities/{c['id']}/dynamic-members", params={**params, "expand": True},
        ).json()
        assert [u["id"] for u in wide["members"]] == [far["id"]]
        assert wide["radius_used"] == 100.0

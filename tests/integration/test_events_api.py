"""
Integration tests for events endpoints.
Tests event creation, reads, organizer-only changes, soft delete and feed skips.
"""
import pytest
from datetime import timedelta
from fastapi.testclient import TestClient
from httpx import AsyncClient
from starlette.websockets import WebSocketDisconnect

from eventconnect.core.security import create_identity_token
from eventconnect.db.models import RsvpStatus
from eventconnect.db.repositories import upsert_rsvp
from eventconnect.main import app, websocket_endpoint
from tests.helpers import FakeWebSocket, auth_headers, event_payload, make_event, make_user, token_for


@pytest.mark.integration
@pytest.mark.asyncio
class TestEventEndpoints:
    """Test event API endpoints."""

    async def test_health(self, client: AsyncClient):
        response = await client.get("/api/health")

        assert response.status_code == 200
        assert response.json() == {"status": "healthy"}

    async def test_create_event(self, client: AsyncClient, organizer):
        response = await client.post("/api/events", headers=auth_headers(organizer), json=event_payload())

        assert response.status_code == 201
        data = response.json()
        assert data["title"] == "Rooftop Jazz Night"
        assert data["price"] == "15.00"
        assert data["is_free"] is False
        assert data["capacity"] == 10
        assert data["organizer_id"] == organizer.id
        assert data["organizer"]["id"] == organizer.id
        assert data["rsvp_count"] == 0
        assert data["spots_left"] == 10
        assert data["is_active"] is True

    async def test_create_free_event(self, client: AsyncClient, organizer):
        response = await client.post(
            "/api/events", headers=auth_headers(organizer), json=event_payload(price="0", capacity=None)
        )

        assert response.status_code == 201
        data = response.json()
        assert data["is_free"] is True
        assert data["spots_left"] is None

    async def test_create_event_converts_wall_clock_to_utc(self, client: AsyncClient, organizer):
        response = await client.post(
            "/api/events",
            headers=auth_headers(organizer),
            json=event_payload(date="2030-07-01", time="19:00:00", timezone="America/New_York"),
        )

        assert response.status_code == 201
        data = response.json()
        assert data["time"] == "19:00:00"
        assert data["timezone"] == "America/New_York"
        assert data["starts_at"].startswith("2030-07-01T23:00:00")

    async def test_create_requires_auth(self, client: AsyncClient):
        response = await client.post("/api/events", json=event_payload())

        assert response.status_code in (401, 403)

    async def test_create_with_bad_token(self, client: AsyncClient):
        response = await client.post(
            "/api/events", headers={"Authorization": "Bearer forged"}, json=event_payload()
        )

        assert response.status_code == 401

    @pytest.mark.parametrize("overrides", [
        {"price": "-5"},
        {"capacity": 0},
        {"category": "Knitting"},
        {"timezone": "Not/AZone"},
        {"title": ""},
    ])
    async def test_create_rejects_invalid_payload(self, client: AsyncClient, organizer, overrides):
        response = await client.post("/api/events", headers=auth_headers(organizer), json=event_payload(**overrides))

        assert response.status_code == 422

    async def test_get_event_detail_anonymous(self, client: AsyncClient, test_event):
        response = await client.get(f"/api/events/{test_event.id}")

        assert response.status_code == 200
        data = response.json()
        assert data["id"] == test_event.id
        assert data["user_rsvp_status"] is None

    async def test_get_missing_event(self, client: AsyncClient):
        response = await client.get("/api/events/9999")

        assert response.status_code == 404

    async def test_feed_newest_first(self, client: AsyncClient, db_session, organizer):
        first = await make_event(db_session, organizer, title="First")
        second = await make_event(db_session, organizer, title="Second")

        response = await client.get("/api/events")

        assert response.status_code == 200
        assert [e["id"] for e in response.json()] == [second.id, first.id]

    async def test_feed_category_filter(self, client: AsyncClient, test_event, free_event):
        response = await client.get("/api/events", params={"category": "Community"})

        assert [e["id"] for e in response.json()] == [free_event.id]

    async def test_feed_unknown_category(self, client: AsyncClient):
        response = await client.get("/api/events", params={"category": "music"})

        assert response.status_code == 422

    async def test_browse_includes_past_events(self, client: AsyncClient, db_session, organizer):
        past = await make_event(db_session, organizer, title="Last year", date="2020-01-01")

        feed = await client.get("/api/events")
        browse = await client.get("/api/events/browse")

        assert past.id not in [e["id"] for e in feed.json()]
        assert past.id in [e["id"] for e in browse.json()]

    async def test_attendees(self, client: AsyncClient, db_session, test_event, organizer, attendee, other_user):
        await upsert_rsvp(db_session, test_event.id, attendee.id, RsvpStatus.going)
        await upsert_rsvp(db_session, test_event.id, other_user.id, RsvpStatus.maybe)

        response = await client.get(f"/api/events/{test_event.id}/attendees")

        assert response.status_code == 200
        assert [u["id"] for u in response.json()] == [organizer.id, attendee.id]

    async def test_attendees_missing_event(self, client: AsyncClient):
        response = await client.get("/api/events/9999/attendees")

        assert response.status_code == 404


@pytest.mark.integration
@pytest.mark.asyncio
class TestEventOwnership:

    async def test_organizer_updates_event(self, client: AsyncClient, organizer, test_event):
        response = await client.put(
            f"/api/events/{test_event.id}",
            headers=auth_headers(organizer),
            json={"title": "Rooftop Jazz Night (moved indoors)", "price": "0"},
        )

        assert response.status_code == 200
        data = response.json()
        assert data["title"] == "Rooftop Jazz Night (moved indoors)"
        assert data["is_free"] is True
        assert data["description"] == test_event.description

    async def test_update_recomputes_start(self, client: AsyncClient, organizer, test_event):
        response = await client.put(
            f"/api/events/{test_event.id}",
            headers=auth_headers(organizer),
            json={"date": "2031-01-15", "time": "09:00:00", "timezone": "Europe/Berlin"},
        )

        assert response.status_code == 200
        assert response.json()["starts_at"].startswith("2031-01-15T08:00:00")

    async def test_non_organizer_cannot_update(self, client: AsyncClient, attendee, test_event):
        response = await client.put(
            f"/api/events/{test_event.id}", headers=auth_headers(attendee), json={"title": "Hijacked"}
        )

        assert response.status_code == 403
        detail = await client.get(f"/api/events/{test_event.id}")
        assert detail.json()["title"] == "Rooftop Jazz Night"

    async def test_update_missing_event(self, client: AsyncClient, organizer):
        response = await client.put("/api/events/9999", headers=auth_headers(organizer), json={"title": "x"})

        assert response.status_code == 404

    async def test_update_cannot_clear_required_field(self, client: AsyncClient, organizer, test_event):
        response = await client.put(
            f"/api/events/{test_event.id}", headers=auth_headers(organizer), json={"location": None}
        )

        assert response.status_code == 422

    async def test_delete_is_soft_and_hides_event(self, client: AsyncClient, db_session, organizer, attendee, test_event):
        await upsert_rsvp(db_session, test_event.id, attendee.id, RsvpStatus.going)

        response = await client.delete(f"/api/events/{test_event.id}", headers=auth_headers(organizer))
        assert response.status_code == 204

        assert (await client.get(f"/api/events/{test_event.id}")).status_code == 404
        assert (await client.get("/api/events/browse")).json() == []
        rsvp = await client.post(
            f"/api/events/{test_event.id}/rsvp", headers=auth_headers(attendee), json={"status": "going"}
        )
        assert rsvp.status_code == 404
        update = await client.put(
            f"/api/events/{test_event.id}", headers=auth_headers(organizer), json={"title": "Back"}
        )
        assert update.status_code == 404

        await db_session.refresh(test_event)
        assert test_event.is_active is False

    async def test_non_organizer_cannot_delete(self, client: AsyncClient, attendee, test_event):
        response = await client.delete(f"/api/events/{test_event.id}", headers=auth_headers(attendee))

        assert response.status_code == 403
        assert (await client.get(f"/api/events/{test_event.id}")).status_code == 200


@pytest.mark.integration
@pytest.mark.asyncio
class TestFeedSkips:

    async def test_skipped_event_leaves_feed(self, client: AsyncClient, attendee, test_event, free_event):
        headers = auth_headers(attendee)

        response = await client.post(f"/api/events/{test_event.id}/skip", headers=headers)
        assert response.status_code == 200

        feed = await client.get("/api/events", headers=headers)
        assert [e["id"] for e in feed.json()] == [free_event.id]

        # other viewers still see it
        anonymous = await client.get("/api/events")
        assert len(anonymous.json()) == 2

    async def test_skip_missing_event(self, client: AsyncClient, attendee):
        response = await client.post("/api/events/9999/skip", headers=auth_headers(attendee))

        assert response.status_code == 404

    async def test_increment_shown(self, client: AsyncClient, db_session, attendee):
        response = await client.post("/api/events/increment-shown", headers=auth_headers(attendee))

        assert response.status_code == 200
        await db_session.refresh(attendee)
        assert attendee.events_shown_since_skip == 1


@pytest.mark.integration
@pytest.mark.asyncio
class TestExternalEvents:

    async def test_external_event_creates_organizer(self, client: AsyncClient):
        body = event_payload(
            organizer_email="promoter@venue.example",
            source="Venue Feed",
            source_url="https://venue.example/events/42",
        )

        response = await client.post("/api/external/events", json=body)

        assert response.status_code == 201
        data = response.json()
        assert data["success"] is True
        event = data["event"]
        assert event["id"] == data["event_id"]
        assert event["organizer_id"].startswith("external_")
        assert "Source: Venue Feed" in event["special_notes"]
        assert "https://venue.example/events/42" in event["special_notes"]

    async def test_external_event_reuses_known_organizer(self, client: AsyncClient, organizer):
        response = await client.post("/api/external/events", json=event_payload(organizer_email=organizer.email))

        assert response.status_code == 201
        assert response.json()["event"]["organizer_id"] == organizer.id

    async def test_external_event_without_email(self, client: AsyncClient):
        response = await client.post("/api/external/events", json=event_payload(source="Crawler"))

        assert response.status_code == 201
        event_id = response.json()["event_id"]
        detail = await client.get(f"/api/events/{event_id}")
        assert detail.json()["organizer"]["last_name"] == "External"

    async def test_external_event_validated(self, client: AsyncClient):
        response = await client.post("/api/external/events", json=event_payload(organizer_email="not-an-email"))

        assert response.status_code == 422


@pytest.mark.integration
class TestWebSocketAuth:
    """The socket is closed before accept unless the token verifies."""

    @pytest.mark.parametrize("query", [
        "?token=forged",
        "",
        f"?token={create_identity_token({'sub': 'late'}, expires_delta=timedelta(seconds=-1))}",
    ])
    def test_rejected_with_policy_violation(self, query):
        client = TestClient(app)

        with pytest.raises(WebSocketDisconnect) as exc:
            with client.websocket_connect(f"/ws{query}") as ws:
                ws.receive_text()

        assert exc.value.code == 1008


@pytest.mark.integration
@pytest.mark.asyncio
class TestWebSocketUserSync:

    async def test_failed_sync_closes_with_policy_violation(self, monkeypatch, db_session, session_factory):
        monkeypatch.setattr("eventconnect.main.AsyncSessionLocal", session_factory)
        await make_user(db_session, "first", email="dup@example.com")
        ws = FakeWebSocket()

        # the email is already taken by another account
        await websocket_endpoint(ws, token=token_for("second", "dup@example.com"))

        assert ws.closed_code == 1008
        assert ws.accepted is False

"""HTTP flows: notes, toasts, sharing, badges and analytics."""

from __future__ import annotations

from datetime import date, datetime, timedelta, timezone

import pytest
from httpx import AsyncClient

from toastyou.config import get_settings
from toastyou.toasts.generation import AudioStore


async def _note(client: AsyncClient, content: str = "Finished the book") -> dict:
    response = await client.post("/api/v1/notes", json={"content": content})
    assert response.status_code == 201
    return response.json()


class TestUsers:
    @pytest.mark.asyncio
    async def test_me(self, authed_client: AsyncClient):
        response = await authed_client.get("/api/v1/users/me")
        assert response.status_code == 200
        data = response.json()
        assert data["username"] == "alice"
        assert data["timezone"] == "UTC"
        assert data["weekly_toast_day"] == 0

    @pytest.mark.asyncio
    async def test_update_settings(self, authed_client: AsyncClient):
        response = await authed_client.patch(
            "/api/v1/users/me/settings",
            json={"timezone": "Europe/Paris", "weekly_toast_day": 5, "voice": "giovanni"},
        )
        assert response.status_code == 200
        data = response.json()
        assert (data["timezone"], data["weekly_toast_day"], data["voice"]) == ("Europe/Paris", 5, "giovanni")

    @pytest.mark.asyncio
    async def test_unknown_timezone_is_400(self, authed_client: AsyncClient):
        response = await authed_client.patch("/api/v1/users/me/settings", json={"timezone": "Nowhere/Land"})
        assert response.status_code == 400
        assert "Unknown timezone" in response.json()["detail"]


class TestNotes:
    @pytest.mark.asyncio
    async def test_first_note_unlocks_badge(self, authed_client: AsyncClient):
        data = await _note(authed_client)
        assert data["note"]["content"] == "Finished the book"
        assert [b["badge"]["requirement"] for b in data["new_badges"]] == ["first_note"]

        second = await _note(authed_client, "Went swimming")
        assert second["new_badges"] == []

    @pytest.mark.asyncio
    async def test_empty_note_rejected(self, authed_client: AsyncClient):
        response = await authed_client.post("/api/v1/notes", json={"content": "   "})
        assert response.status_code == 400

    @pytest.mark.asyncio
    async def test_list_and_delete(self, authed_client: AsyncClient):
        note_id = (await _note(authed_client))["note"]["id"]

        listing = (await authed_client.get("/api/v1/notes")).json()
        assert listing["total"] == 1

        assert (await authed_client.delete(f"/api/v1/notes/{note_id}")).status_code == 204
        assert (await authed_client.delete(f"/api/v1/notes/{note_id}")).status_code == 404
        assert (await authed_client.get("/api/v1/notes")).json()["total"] == 0

    @pytest.mark.asyncio
    async def test_cannot_delete_someone_elses_note(self, authed_client: AsyncClient, other_user, bearer):
        note_id = (await _note(authed_client))["note"]["id"]
        response = await authed_client.delete(f"/api/v1/notes/{note_id}", headers=bearer(other_user))
        assert response.status_code == 404

    @pytest.mark.asyncio
    async def test_owner_can_edit(self, authed_client: AsyncClient):
        note = (await _note(authed_client, "Finsihed the book"))["note"]

        response = await authed_client.patch(f"/api/v1/notes/{note['id']}", json={"content": " Finished the book "})
        assert response.status_code == 200
        assert response.json()["content"] == "Finished the book"

        listing = (await authed_client.get("/api/v1/notes")).json()
        assert [n["content"] for n in listing["notes"]] == ["Finished the book"]

    @pytest.mark.asyncio
    async def test_edit_cannot_empty_a_note(self, authed_client: AsyncClient):
        note_id = (await _note(authed_client))["note"]["id"]
        response = await authed_client.patch(f"/api/v1/notes/{note_id}", json={"content": ""})
        assert response.status_code == 400

    @pytest.mark.asyncio
    async def test_cannot_edit_someone_elses_note(self, authed_client: AsyncClient, other_user, bearer):
        note_id = (await _note(authed_client))["note"]["id"]
        response = await authed_client.patch(
            f"/api/v1/notes/{note_id}", json={"content": "hijacked"}, headers=bearer(other_user)
        )
        assert response.status_code == 404
        listing = (await authed_client.get("/api/v1/notes")).json()
        assert listing["notes"][0]["content"] == "Finished the book"


class TestToasts:
    @pytest.mark.asyncio
    async def test_window(self, authed_client: AsyncClient):
        data = (await authed_client.get("/api/v1/toasts/window")).json()
        start = date.fromisoformat(data["week_start"])
        end = date.fromisoformat(data["week_end"])
        assert end - start == timedelta(days=7)
        # Toast day 0 is Sunday
        assert end.isoweekday() == 7
        assert data["toast_day_name"] == "Sunday"
        assert date.fromisoformat(data["next_toast_date"]) > end

    @pytest.mark.asyncio
    async def test_voices(self, client: AsyncClient):
        voices = (await client.get("/api/v1/voices")).json()
        assert "rachel" in {v["slug"] for v in voices}

    @pytest.mark.asyncio
    async def test_saved_audio_is_served(self, client: AsyncClient):
        settings = get_settings()
        url = await AudioStore(settings.audio_dir, settings.audio_base_url).save(b"ID3fake-mp3")

        response = await client.get(url)
        assert response.status_code == 200
        assert response.content == b"ID3fake-mp3"

        missing = await client.get(f"{settings.audio_base_url}/toast-missing.mp3")
        assert missing.status_code == 404

    @pytest.mark.asyncio
    async def test_generate_for_explicit_week(self, authed_client: AsyncClient, fake_text):
        today = datetime.now(timezone.utc).date()
        await _note(authed_client, "Shipped the release")

        body = {
            "week_start": (today - timedelta(days=1)).isoformat(),
            "week_end": (today + timedelta(days=1)).isoformat(),
        }
        response = await authed_client.post("/api/v1/toasts/generate", json=body)
        assert response.status_code == 200
        toast = response.json()
        assert toast["content"] == fake_text.text
        assert toast["shared"] is False
        assert len(toast["note_ids"]) == 1

        again = await authed_client.post("/api/v1/toasts/generate", json=body)
        assert again.json()["id"] == toast["id"]

        fetched = await authed_client.get(f"/api/v1/toasts/{toast['id']}")
        assert fetched.json()["week_start_date"] == body["week_start"]

        listing = (await authed_client.get("/api/v1/toasts")).json()
        assert listing["total"] == 1

    @pytest.mark.asyncio
    async def test_empty_week_is_404(self, authed_client: AsyncClient):
        response = await authed_client.post(
            "/api/v1/toasts/generate", json={"week_start": "2024-01-01", "week_end": "2024-01-08"}
        )
        assert response.status_code == 404

    @pytest.mark.asyncio
    async def test_half_specified_week_is_400(self, authed_client: AsyncClient):
        response = await authed_client.post("/api/v1/toasts/generate", json={"week_start": "2024-01-01"})
        assert response.status_code == 400

    @pytest.mark.asyncio
    async def test_generation_failure_is_502(self, authed_client: AsyncClient, fake_text):
        today = datetime.now(timezone.utc).date()
        await _note(authed_client)
        fake_text.error = RuntimeError("model overloaded")

        response = await authed_client.post(
            "/api/v1/toasts/generate",
            json={"week_start": today.isoformat(), "week_end": (today + timedelta(days=1)).isoformat()},
        )
        assert response.status_code == 502
        assert (await authed_client.get("/api/v1/toasts")).json()["total"] == 0

    @pytest.mark.asyncio
    async def test_share_and_react(self, authed_client: AsyncClient, other_user, bearer):
        today = datetime.now(timezone.utc).date()
        await _note(authed_client)
        toast = (
            await authed_client.post(
                "/api/v1/toasts/generate",
                json={"week_start": today.isoformat(), "week_end": (today + timedelta(days=1)).isoformat()},
            )
        ).json()

        shared = (await authed_client.post(f"/api/v1/toasts/{toast['id']}/share")).json()
        code = shared["share_code"]
        assert shared["shared"] is True

        public = await authed_client.get(f"/api/v1/shared/{code}")
        assert public.status_code == 200
        assert public.json()["author_name"] == "Alice Walker"

        react = await authed_client.post(
            f"/api/v1/shared/{code}/reactions", json={"emoji": "🥂"}, headers=bearer(other_user)
        )
        assert react.json() == {"created": True, "emoji": "🥂"}

        own = await authed_client.post(f"/api/v1/shared/{code}/reactions", json={"emoji": "🥂"})
        assert own.status_code == 400

        assert (await authed_client.get(f"/api/v1/shared/{code}")).json()["reactions"] == {"🥂": 1}

        badges = (await authed_client.get("/api/v1/users/me/badges")).json()
        requirements = {b["badge"]["requirement"] for b in badges["earned"]}
        assert {"first_note", "toasts_1", "shares_1", "reactions_1"} <= requirements


class TestBadges:
    @pytest.mark.asyncio
    async def test_catalogue_is_public(self, client: AsyncClient):
        response = await client.get("/api/v1/badges")
        assert response.status_code == 200
        assert len(response.json()["badges"]) == 13

    @pytest.mark.asyncio
    async def test_unseen_and_mark_seen(self, authed_client: AsyncClient):
        await _note(authed_client)

        unseen = (await authed_client.get("/api/v1/users/me/badges/unseen")).json()
        assert len(unseen) == 1
        user_badge_id = unseen[0]["id"]

        for _ in range(2):
            response = await authed_client.patch(f"/api/v1/users/me/badges/{user_badge_id}/seen")
            assert response.status_code == 200
            assert response.json()["seen"] is True

        assert (await authed_client.get("/api/v1/users/me/badges/unseen")).json() == []
        assert (await authed_client.patch("/api/v1/users/me/badges/9999/seen")).status_code == 404

    @pytest.mark.asyncio
    async def test_check_endpoint(self, authed_client: AsyncClient):
        response = await authed_client.post("/api/v1/users/me/badges/check")
        assert response.status_code == 200
        assert response.json() == {"new_badges": []}


class TestAnalytics:
    @pytest.mark.asyncio
    async def test_summary(self, authed_client: AsyncClient):
        await _note(authed_client)
        summary = (await authed_client.get("/api/v1/analytics/summary")).json()

        assert summary["current_streak"] == 1
        assert summary["badges_count"] == 1
        assert summary["total_notes"] == 1
        assert summary["weekly"]["notes"] == 1
        assert summary["monthly"]["notes"] == 1

    @pytest.mark.asyncio
    async def test_activity_log_and_filter(self, authed_client: AsyncClient):
        await _note(authed_client)
        activity = (await authed_client.get("/api/v1/analytics/activity")).json()["activities"]
        assert {a["activity_type"] for a in activity} == {"note-create", "badge-earned"}

        notes_only = await authed_client.get("/api/v1/analytics/activity", params={"type": "note-create"})
        assert [a["activity_type"] for a in notes_only.json()["activities"]] == ["note-create"]

    @pytest.mark.asyncio
    async def test_log_page_view(self, authed_client: AsyncClient):
        response = await authed_client.post(
            "/api/v1/analytics/log", json={"activity_type": "page-view", "metadata": {"page": "analytics"}}
        )
        assert response.status_code == 201
        assert response.json()["metadata"] == {"page": "analytics"}

    @pytest.mark.asyncio
    @pytest.mark.parametrize("activity_type", ["toast-share", "reaction-received", "toast-generated", "badge-earned"])
    async def test_log_rejects_server_recorded_types(self, authed_client: AsyncClient, activity_type: str):
        response = await authed_client.post("/api/v1/analytics/log", json={"activity_type": activity_type})
        assert response.status_code == 400
        assert "recorded by the server" in response.json()["detail"]

    @pytest.mark.asyncio
    async def test_log_rejects_unknown_type(self, authed_client: AsyncClient):
        response = await authed_client.post("/api/v1/analytics/log", json={"activity_type": "moon-landing"})
        assert response.status_code == 400

    @pytest.mark.asyncio
    async def test_logged_reactions_cannot_earn_badges(self, authed_client: AsyncClient):
        for _ in range(25):
            await authed_client.post("/api/v1/analytics/log", json={"activity_type": "reaction-received"})
        await authed_client.post("/api/v1/users/me/badges/check")

        badges = (await authed_client.get("/api/v1/users/me/badges")).json()
        assert badges["earned"] == []
        summary = (await authed_client.get("/api/v1/analytics/summary")).json()
        assert summary["weekly"]["shares"] == 0

    @pytest.mark.asyncio
    async def test_regenerated_toast_counted_once(self, authed_client: AsyncClient):
        today = datetime.now(timezone.utc).date()
        await _note(authed_client)
        body = {"week_start": today.isoformat(), "week_end": (today + timedelta(days=1)).isoformat()}
        await authed_client.post("/api/v1/toasts/generate", json=body)
        await authed_client.post("/api/v1/toasts/generate", json={**body, "regenerate": True})

        summary = (await authed_client.get("/api/v1/analytics/summary")).json()
        assert summary["total_toasts"] == 1
        assert summary["weekly"]["toasts"] == 1
        assert summary["monthly"]["toasts"] == 1

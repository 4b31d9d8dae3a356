"""Admin: waitlist approval, bans, content moderation, stats and settings."""

import uuid
from datetime import datetime, timedelta, timezone

import pytest
from fastapi import status

from music_combinators.models.account import (
    ROLE_CREATOR,
    STATUS_ACTIVE,
    STATUS_BANNED,
    STATUS_WAITLISTED,
)
from music_combinators.models.content import Reel, Track


@pytest.fixture()
def admin_headers(admin, headers_for) -> dict[str, str]:
    return headers_for(admin)


@pytest.fixture()
def waitlisted(make_account):
    """Three waitlisted accounts, oldest first."""
    now = datetime.now(timezone.utc)
    return [
        make_account(
            status=STATUS_WAITLISTED,
            username=f"queued_{i}",
            created_at=now - timedelta(hours=3 - i),
        )
        for i in range(3)
    ]


class TestWaitlist:
    def test_listing_is_fifo(self, client, admin_headers, waitlisted) -> None:
        data = client.get("/api/v1/admin/waitlist", headers=admin_headers).json()["data"]
        assert [e["username"] for e in data["items"]] == ["queued_0", "queued_1", "queued_2"]
        assert data["pagination"]["total"] == 3

    def test_batch_approves_oldest_first(
        self, client, admin_headers, waitlisted, notifier
    ) -> None:
        r = client.post(
            "/api/v1/admin/users/approve-batch",
            json={"count": 2},
            headers=admin_headers,
        )
        assert r.status_code == status.HTTP_200_OK
        data = r.json()["data"]
        assert data["count"] == 2
        assert data["message"] == "Successfully approved 2 user(s)"
        assert {a["username"] for a in data["approved"]} == {"queued_0", "queued_1"}
        assert all(a["status"] == STATUS_ACTIVE for a in data["approved"])
        assert all(a["approved_at"] for a in data["approved"])

        assert notifier.kinds() == ["waitlist-approved", "waitlist-approved"]

        remaining = client.get("/api/v1/admin/waitlist", headers=admin_headers).json()["data"]
        assert [e["username"] for e in remaining["items"]] == ["queued_2"]

    def test_batch_defaults_to_setting(self, client, admin_headers, waitlisted) -> None:
        client.put(
            "/api/v1/admin/settings",
            json={"settings": {"onboarding_batch_size": 1}},
            headers=admin_headers,
        )

        r = client.post("/api/v1/admin/users/approve-batch", headers=admin_headers)
        data = r.json()["data"]
        assert data["count"] == 1
        assert data["approved"][0]["username"] == "queued_0"

    def test_batch_smaller_than_requested(self, client, admin_headers, waitlisted) -> None:
        r = client.post(
            "/api/v1/admin/users/approve-batch",
            json={"count": 50},
            headers=admin_headers,
        )
        assert r.json()["data"]["count"] == 3

    def test_batch_on_empty_waitlist(self, client, admin_headers, notifier) -> None:
        r = client.post(
            "/api/v1/admin/users/approve-batch",
            json={"count": 5},
            headers=admin_headers,
        )
        assert r.status_code == status.HTTP_200_OK
        assert r.json()["data"] == {"approved": [], "count": 0, "message": "No users in waitlist"}
        assert notifier.sent == []

    @pytest.mark.parametrize("count", [0, 101])
    def test_batch_count_bounds(self, client, admin_headers, count) -> None:
        r = client.post(
            "/api/v1/admin/users/approve-batch",
            json={"count": count},
            headers=admin_headers,
        )
        assert r.status_code == status.HTTP_400_BAD_REQUEST

    def test_single_approval_is_not_repeatable(
        self, client, admin_headers, waitlisted, headers_for, notifier
    ) -> None:
        target = waitlisted[1]
        url = f"/api/v1/admin/users/{target.id}/approve"

        r = client.post(url, headers=admin_headers)
        assert r.status_code == status.HTTP_200_OK
        assert r.json()["data"]["status"] == STATUS_ACTIVE
        assert notifier.sent[0]["to_email"] == target.email

        again = client.post(url, headers=admin_headers)
        assert again.status_code == status.HTTP_404_NOT_FOUND
        assert again.json()["error"]["message"] == "User not in waitlist or already approved"

        # Approved account can now use active-only routes
        r = client.put(
            "/api/v1/users/me/profile", json={"bio": "hi"}, headers=headers_for(target)
        )
        assert r.status_code == status.HTTP_200_OK

    def test_approving_unknown_user(self, client, admin_headers) -> None:
        r = client.post(f"/api/v1/admin/users/{uuid.uuid4()}/approve", headers=admin_headers)
        assert r.status_code == status.HTTP_404_NOT_FOUND


class TestBans:
    def test_ban_then_unban(self, client, admin_headers, listener, creator, headers_for) -> None:
        r = client.post(
            f"/api/v1/admin/users/{listener.id}/ban",
            json={"reason": "Spam"},
            headers=admin_headers,
        )
        assert r.status_code == status.HTTP_200_OK
        data = r.json()["data"]
        assert data["status"] == STATUS_BANNED
        assert data["ban_reason"] == "Spam"
        assert data["banned_at"] is not None

        blocked = client.post(
            f"/api/v1/users/{creator.id}/follow", headers=headers_for(listener)
        )
        assert blocked.json()["error"]["message"] == "Account has been banned"

        r = client.post(f"/api/v1/admin/users/{listener.id}/unban", headers=admin_headers)
        data = r.json()["data"]
        assert data["status"] == STATUS_ACTIVE
        assert data["ban_reason"] is None
        assert data["banned_at"] is None

    def test_ban_without_reason(self, client, admin_headers, listener) -> None:
        r = client.post(f"/api/v1/admin/users/{listener.id}/ban", headers=admin_headers)
        assert r.status_code == status.HTTP_200_OK
        assert r.json()["data"]["ban_reason"] is None

    def test_cannot_ban_yourself(self, client, admin, admin_headers) -> None:
        r = client.post(f"/api/v1/admin/users/{admin.id}/ban", headers=admin_headers)
        assert r.status_code == status.HTTP_400_BAD_REQUEST
        assert r.json()["error"]["message"] == "Cannot ban yourself"

    def test_ban_unknown_user(self, client, admin_headers) -> None:
        r = client.post(f"/api/v1/admin/users/{uuid.uuid4()}/ban", headers=admin_headers)
        assert r.status_code == status.HTTP_404_NOT_FOUND
        assert r.json()["error"]["message"] == "User not found"

    def test_unban_requires_banned_account(self, client, admin_headers, listener) -> None:
        r = client.post(f"/api/v1/admin/users/{listener.id}/unban", headers=admin_headers)
        assert r.status_code == status.HTTP_404_NOT_FOUND
        assert r.json()["error"]["message"] == "User not found or not banned"

    def test_admin_routes_reject_creators(self, client, creator, headers_for) -> None:
        r = client.get("/api/v1/admin/waitlist", headers=headers_for(creator))
        assert r.status_code == status.HTTP_403_FORBIDDEN


class TestModeration:
    @pytest.fixture()
    def track(self, db_session, creator) -> Track:
        item = Track(user_id=creator.id, title="Flagged", audio_url="https://storage.test/a/9")
        db_session.add(item)
        db_session.commit()
        db_session.refresh(item)
        return item

    def test_takedown_and_restore(self, client, admin_headers, track) -> None:
        url = f"/api/v1/admin/tracks/{track.id}"

        r = client.patch(url, json={"is_active": False}, headers=admin_headers)
        assert r.status_code == status.HTTP_200_OK
        assert r.json()["data"]["is_active"] is False
        assert client.get(f"/api/v1/tracks/{track.id}").status_code == 404

        client.patch(url, json={"is_active": True}, headers=admin_headers)
        assert client.get(f"/api/v1/tracks/{track.id}").status_code == 200

    def test_admin_deletes_any_reel(self, client, db_session, admin_headers, creator, gateway) -> None:
        reel = Reel(user_id=creator.id, video_url="https://storage.test/v/9")
        db_session.add(reel)
        db_session.commit()
        db_session.refresh(reel)
        reel_id = reel.id

        r = client.delete(f"/api/v1/admin/reels/{reel_id}", headers=admin_headers)
        assert r.status_code == status.HTTP_200_OK
        assert gateway.deleted == ["https://storage.test/v/9"]
        assert client.get(f"/api/v1/reels/{reel_id}").status_code == 404

    def test_moderating_missing_content(self, client, admin_headers) -> None:
        r = client.delete(f"/api/v1/admin/tracks/{uuid.uuid4()}", headers=admin_headers)
        assert r.status_code == status.HTTP_404_NOT_FOUND
        assert r.json()["error"]["message"] == "Track not found"


class TestPlatform:
    def test_stats(self, client, db_session, admin_headers, creator, listener, make_account) -> None:
        make_account(status=STATUS_WAITLISTED)
        make_account(status=STATUS_BANNED)
        db_session.add(Track(user_id=creator.id, title="a", audio_url="u1"))
        db_session.add(Track(user_id=creator.id, title="b", audio_url="u2", is_active=False))
        db_session.add(Reel(user_id=creator.id, video_url="v1"))
        db_session.commit()

        data = client.get("/api/v1/admin/stats", headers=admin_headers).json()["data"]
        assert data["users"] == {
            "total": 5,
            "waitlisted": 1,
            "active": 3,
            "banned": 1,
            "listeners": 3,
            "creators": 1,
            "admins": 1,
        }
        assert data["content"] == {"tracks": 1, "reels": 1}
        assert data["pending"] == {"creator_applications": 0}

    def test_settings_defaults_and_update(self, client, admin_headers) -> None:
        defaults = client.get("/api/v1/admin/settings", headers=admin_headers).json()["data"]
        assert defaults == {"onboarding_batch_size": "10", "max_active_users": "100"}

        r = client.put(
            "/api/v1/admin/settings",
            json={"settings": {"onboarding_batch_size": 25, "max_active_users": "500"}},
            headers=admin_headers,
        )
        assert r.status_code == status.HTTP_200_OK
        assert r.json()["data"] == {"onboarding_batch_size": "25", "max_active_users": "500"}

    @pytest.mark.parametrize(
        ("settings", "message"),
        [
            ({"theme": 1}, "Unknown setting: theme"),
            ({"onboarding_batch_size": "lots"}, "Setting onboarding_batch_size must be an integer"),
            ({"onboarding_batch_size": 0}, "Setting onboarding_batch_size must be between 1 and 100"),
            ({"max_active_users": 0}, "Setting max_active_users must be at least 1"),
        ],
    )
    def test_settings_validation(self, client, admin_headers, settings, message) -> None:
        r = client.put("/api/v1/admin/settings", json={"settings": settings}, headers=admin_headers)
        assert r.status_code == status.HTTP_400_BAD_REQUEST
        assert r.json()["error"]["message"] == message

        unchanged = client.get("/api/v1/admin/settings", headers=admin_headers).json()["data"]
        assert unchanged["onboarding_batch_size"] == "10"

    def test_stats_on_empty_catalogue(self, client, admin_headers, make_account) -> None:
        make_account(role=ROLE_CREATOR)
        data = client.get("/api/v1/admin/stats", headers=admin_headers).json()["data"]
        assert data["users"]["creators"] == 1
        assert data["content"] == {"tracks": 0, "reels": 0}

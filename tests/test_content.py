"""Tracks and reels: upload, visibility, ownership and counters."""

import uuid
from datetime import datetime, timedelta, timezone

import pytest
from fastapi import status
from sqlalchemy import func
from sqlalchemy.exc import OperationalError
from sqlmodel import select

from music_combinators.core.errors import ValidationError
from music_combinators.core.storage_utils import MB, MediaUpload, validate_media
from music_combinators.models.account import ROLE_CREATOR
from music_combinators.models.content import Reel, Track
from music_combinators.models.engagement import Like
from music_combinators.repositories.content_repo import ReelRepository, TrackRepository
from music_combinators.repositories.like_repo import LikeRepository
from music_combinators.schemas.content import ReelCreate, TrackCreate
from music_combinators.services.content_service import ReelService, TrackService


@pytest.fixture()
def make_track(db_session):
    def _make(owner, title="Untitled", is_active=True, minutes_ago=0, **extra):
        track = Track(
            user_id=owner.id,
            title=title,
            audio_url=f"https://storage.test/audio/{owner.id}/{uuid.uuid4()}",
            is_active=is_active,
            created_at=datetime.now(timezone.utc) - timedelta(minutes=minutes_ago),
            **extra,
        )
        db_session.add(track)
        db_session.commit()
        db_session.refresh(track)
        return track

    return _make


@pytest.fixture()
def make_reel(db_session):
    def _make(owner, caption=None, is_active=True, minutes_ago=0):
        reel = Reel(
            user_id=owner.id,
            caption=caption,
            video_url=f"https://storage.test/video/{owner.id}/{uuid.uuid4()}",
            is_active=is_active,
            created_at=datetime.now(timezone.utc) - timedelta(minutes=minutes_ago),
        )
        db_session.add(reel)
        db_session.commit()
        db_session.refresh(reel)
        return reel

    return _make


class FailingTrackRepository(TrackRepository):
    def create(self, session, item):
        raise RuntimeError("insert failed")


def _count(db_session, model) -> int:
    return db_session.exec(select(func.count()).select_from(model)).one()


# ---------------------------------------------------------------------------
# Media validation
# ---------------------------------------------------------------------------


class TestValidateMedia:
    def test_missing_or_empty_payload(self) -> None:
        with pytest.raises(ValidationError) as exc:
            validate_media("audio", None)
        assert exc.value.message == "Audio file is required"

        with pytest.raises(ValidationError):
            validate_media("video", MediaUpload(content_type="video/mp4", data=b""))

    def test_wrong_type(self) -> None:
        with pytest.raises(ValidationError) as exc:
            validate_media("video", MediaUpload(content_type="video/quicktime", data=b"x"))
        assert exc.value.message == "Invalid video file type. Allowed types: video/mp4"

    def test_size_limit(self) -> None:
        too_big = MediaUpload(content_type="image/png", data=b"\x00" * (5 * MB + 1))
        with pytest.raises(ValidationError) as exc:
            validate_media("image", too_big)
        assert exc.value.message == "File size exceeds 5MB limit"

    def test_returns_extension(self) -> None:
        upload = MediaUpload(content_type="image/webp", data=b"x")
        assert validate_media("image", upload) == "webp"


# ---------------------------------------------------------------------------
# Track upload
# ---------------------------------------------------------------------------


class TestTrackUpload:
    def test_creator_uploads_track(self, client, creator, headers_for, gateway, upload_files) -> None:
        r = client.post(
            "/api/v1/tracks",
            data={"title": "Night Drive", "duration_seconds": "95"},
            files=upload_files(),
            headers=headers_for(creator),
        )
        assert r.status_code == status.HTTP_201_CREATED
        data = r.json()["data"]
        assert data["title"] == "Night Drive"
        assert data["duration_seconds"] == 95
        assert data["like_count"] == 0
        assert data["play_count"] == 0
        assert data["is_active"] is True
        assert data["creator"]["artist_name"] == "Beat Maker"
        assert data["audio_url"] == f"https://storage.test/audio/{creator.id}/1"
        assert data["cover_url"] is None
        assert gateway.calls == [("put", data["audio_url"])]

    def test_cover_art_is_optional_second_upload(
        self, client, creator, headers_for, gateway, upload_files
    ) -> None:
        files = {**upload_files(), **upload_files("cover", "image/png")}
        r = client.post(
            "/api/v1/tracks",
            data={"title": "With Art"},
            files=files,
            headers=headers_for(creator),
        )
        assert r.status_code == status.HTTP_201_CREATED
        assert r.json()["data"]["cover_url"] == f"https://storage.test/image/{creator.id}/2"
        assert len(gateway.calls) == 2

    def test_audio_is_required(self, client, creator, headers_for, gateway) -> None:
        r = client.post(
            "/api/v1/tracks",
            data={"title": "No Audio"},
            headers=headers_for(creator),
        )
        assert r.status_code == status.HTTP_400_BAD_REQUEST
        assert r.json()["error"]["message"] == "Audio file is required"
        assert gateway.calls == []

    def test_wrong_audio_type(self, client, creator, headers_for, gateway, upload_files) -> None:
        r = client.post(
            "/api/v1/tracks",
            data={"title": "Wave"},
            files=upload_files(content_type="audio/wav"),
            headers=headers_for(creator),
        )
        assert r.status_code == status.HTTP_400_BAD_REQUEST
        assert r.json()["error"]["message"].startswith("Invalid audio file type")
        assert gateway.calls == []

    def test_bad_cover_rejected_before_any_upload(
        self, client, creator, headers_for, gateway, upload_files
    ) -> None:
        files = {**upload_files(), **upload_files("cover", "image/gif")}
        r = client.post(
            "/api/v1/tracks",
            data={"title": "Gif Art"},
            files=files,
            headers=headers_for(creator),
        )
        assert r.status_code == status.HTTP_400_BAD_REQUEST
        assert gateway.calls == []

    def test_blank_title(self, client, creator, headers_for, upload_files) -> None:
        r = client.post(
            "/api/v1/tracks",
            data={"title": "   "},
            files=upload_files(),
            headers=headers_for(creator),
        )
        assert r.status_code == status.HTTP_400_BAD_REQUEST
        assert r.json()["error"]["message"] == "Track title is required"

    def test_listener_cannot_upload(self, client, listener, headers_for, upload_files) -> None:
        r = client.post(
            "/api/v1/tracks",
            data={"title": "Nope"},
            files=upload_files(),
            headers=headers_for(listener),
        )
        assert r.status_code == status.HTTP_403_FORBIDDEN
        assert r.json()["error"]["message"] == "Insufficient permissions"

    def test_admin_can_upload(self, client, admin, headers_for, upload_files) -> None:
        r = client.post(
            "/api/v1/tracks",
            data={"title": "Staff Pick"},
            files=upload_files(),
            headers=headers_for(admin),
        )
        assert r.status_code == status.HTTP_201_CREATED


class TestUploadCompensation:
    """A failed insert must not leave stored media behind."""

    def _service(self, gateway) -> TrackService:
        return TrackService(FailingTrackRepository(), LikeRepository(), gateway)

    def _audio(self) -> MediaUpload:
        return MediaUpload(content_type="audio/mpeg", data=b"\x00" * 32, filename="a.mp3")

    def test_uploaded_objects_are_deleted(self, db_session, creator, gateway) -> None:
        cover = MediaUpload(content_type="image/jpeg", data=b"\x00" * 8, filename="c.jpg")

        with pytest.raises(RuntimeError, match="insert failed"):
            self._service(gateway).create(
                db_session, creator.id, TrackCreate(title="Doomed"), self._audio(), cover
            )

        puts = [url for op, url in gateway.calls if op == "put"]
        assert len(puts) == 2
        assert gateway.deleted == puts
        assert _count(db_session, Track) == 0

    def test_cleanup_failure_keeps_original_error(self, db_session, creator, gateway) -> None:
        gateway.fail_delete = True

        with pytest.raises(RuntimeError, match="insert failed"):
            self._service(gateway).create(
                db_session, creator.id, TrackCreate(title="Doomed"), self._audio()
            )

        assert len(gateway.deleted) == 1

    def test_storage_failure_uploads_nothing(self, db_session, creator, gateway) -> None:
        gateway.fail_put = True
        service = TrackService(TrackRepository(), LikeRepository(), gateway)

        with pytest.raises(RuntimeError, match="storage unavailable"):
            service.create(db_session, creator.id, TrackCreate(title="Offline"), self._audio())

        assert gateway.calls == []
        assert _count(db_session, Track) == 0


# ---------------------------------------------------------------------------
# Track reads
# ---------------------------------------------------------------------------


class TestTrackListing:
    def test_only_active_tracks_newest_first(self, client, creator, make_track) -> None:
        make_track(creator, title="Oldest", minutes_ago=30)
        make_track(creator, title="Hidden", is_active=False, minutes_ago=20)
        make_track(creator, title="Newest", minutes_ago=10)

        data = client.get("/api/v1/tracks").json()["data"]
        assert [t["title"] for t in data["items"]] == ["Newest", "Oldest"]
        assert data["pagination"]["total"] == 2
        assert all(t["is_liked"] is None for t in data["items"])

    def test_pagination(self, client, creator, make_track) -> None:
        for i in range(5):
            make_track(creator, title=f"T{i}", minutes_ago=i)

        data = client.get("/api/v1/tracks", params={"page": 3, "limit": 2}).json()["data"]
        assert [t["title"] for t in data["items"]] == ["T4"]
        assert data["pagination"] == {"page": 3, "limit": 2, "total": 5, "pages": 3}

    def test_invalid_page(self, client) -> None:
        r = client.get("/api/v1/tracks", params={"page": 0})
        assert r.status_code == status.HTTP_400_BAD_REQUEST

    def test_search_by_title(self, client, creator, make_track) -> None:
        make_track(creator, title="Midnight City")
        make_track(creator, title="Sunrise")
        make_track(creator, title="Midnight Hidden", is_active=False)

        data = client.get("/api/v1/tracks/search", params={"q": "midnight"}).json()["data"]
        assert [t["title"] for t in data["items"]] == ["Midnight City"]
        assert data["pagination"]["total"] == 1

        everything = client.get("/api/v1/tracks/search", params={"q": "  "}).json()["data"]
        assert everything["pagination"]["total"] == 2

    def test_inactive_track_visible_to_owner_and_admin_only(
        self, client, creator, listener, admin, make_track, headers_for
    ) -> None:
        track = make_track(creator, is_active=False)
        url = f"/api/v1/tracks/{track.id}"

        anonymous = client.get(url)
        assert anonymous.status_code == status.HTTP_404_NOT_FOUND
        assert anonymous.json()["error"]["message"] == "Track not found"
        assert client.get(url, headers=headers_for(listener)).status_code == 404
        assert client.get(url, headers=headers_for(creator)).status_code == 200
        assert client.get(url, headers=headers_for(admin)).status_code == 200

    def test_owner_listing_includes_inactive_for_owner(
        self, client, creator, listener, make_track, headers_for
    ) -> None:
        make_track(creator, title="Live")
        make_track(creator, title="Draft", is_active=False)
        url = f"/api/v1/users/{creator.id}/tracks"

        public = client.get(url, headers=headers_for(listener)).json()["data"]
        assert [t["title"] for t in public["items"]] == ["Live"]

        own = client.get(url, headers=headers_for(creator)).json()["data"]
        assert own["pagination"]["total"] == 2

    def test_play_counts_active_tracks_only(self, client, creator, make_track) -> None:
        track = make_track(creator)
        for _ in range(3):
            assert client.post(f"/api/v1/tracks/{track.id}/play").status_code == 200

        assert client.get(f"/api/v1/tracks/{track.id}").json()["data"]["play_count"] == 3

        hidden = make_track(creator, is_active=False)
        assert client.post(f"/api/v1/tracks/{hidden.id}/play").status_code == 404

    def test_counter_failure_is_swallowed(
        self, db_session, creator, make_track, gateway, monkeypatch
    ) -> None:
        track = make_track(creator)
        service = TrackService(TrackRepository(), LikeRepository(), gateway)

        def broken(*args, **kwargs):
            raise OperationalError("UPDATE tracks", {}, Exception("locked"))

        monkeypatch.setattr(service.repo, "increment_counter", broken)
        assert service.play(db_session, track.id).id == track.id

    def test_any_counter_failure_is_swallowed(
        self, db_session, creator, make_track, gateway, monkeypatch
    ) -> None:
        track = make_track(creator)
        service = TrackService(TrackRepository(), LikeRepository(), gateway)

        def broken(*args, **kwargs):
            raise RuntimeError("connection reset")

        monkeypatch.setattr(service.repo, "increment_counter", broken)
        assert service.play(db_session, track.id).id == track.id


# ---------------------------------------------------------------------------
# Track writes
# ---------------------------------------------------------------------------


class TestTrackOwnership:
    def test_owner_updates_title_and_visibility(
        self, client, creator, make_track, headers_for
    ) -> None:
        track = make_track(creator, title="Old")
        r = client.patch(
            f"/api/v1/tracks/{track.id}",
            json={"title": " New ", "is_active": False},
            headers=headers_for(creator),
        )
        assert r.status_code == status.HTTP_200_OK
        assert r.json()["data"]["title"] == "New"
        assert r.json()["data"]["is_active"] is False

    @pytest.mark.parametrize(
        "body, message",
        [
            ({"title": None}, "Track title cannot be empty"),
            ({"is_active": None}, "is_active must be true or false"),
        ],
    )
    def test_explicit_null_is_rejected(
        self, client, db_session, creator, make_track, headers_for, body, message
    ) -> None:
        track = make_track(creator, title="Keep")
        r = client.patch(
            f"/api/v1/tracks/{track.id}", json=body, headers=headers_for(creator)
        )
        assert r.status_code == status.HTTP_400_BAD_REQUEST
        assert r.json()["error"]["message"] == message
        db_session.refresh(track)
        assert track.title == "Keep"
        assert track.is_active is True

    def test_reel_visibility_null_is_rejected(
        self, client, db_session, creator, make_reel, headers_for
    ) -> None:
        reel = make_reel(creator, caption="hi")
        r = client.patch(
            f"/api/v1/reels/{reel.id}",
            json={"is_active": None},
            headers=headers_for(creator),
        )
        assert r.status_code == status.HTTP_400_BAD_REQUEST
        assert r.json()["error"]["message"] == "is_active must be true or false"
        db_session.refresh(reel)
        assert reel.is_active is True

        cleared = client.patch(
            f"/api/v1/reels/{reel.id}",
            json={"caption": None},
            headers=headers_for(creator),
        )
        assert cleared.status_code == status.HTTP_200_OK
        assert cleared.json()["data"]["caption"] is None

    def test_other_users_cannot_edit_or_delete(
        self, client, creator, make_account, make_track, headers_for, gateway
    ) -> None:
        rival = make_account(role=ROLE_CREATOR)
        track = make_track(creator)
        url = f"/api/v1/tracks/{track.id}"

        r = client.patch(url, json={"title": "Mine now"}, headers=headers_for(rival))
        assert r.status_code == status.HTTP_404_NOT_FOUND
        assert r.json()["error"]["message"] == "Track not found or unauthorized"

        r = client.delete(url, headers=headers_for(rival))
        assert r.status_code == status.HTTP_404_NOT_FOUND
        assert gateway.calls == []

        missing = client.delete(f"/api/v1/tracks/{uuid.uuid4()}", headers=headers_for(creator))
        assert missing.json()["error"]["message"] == "Track not found or unauthorized"

    def test_delete_removes_row_media_and_likes(
        self, client, db_session, creator, listener, make_track, headers_for, gateway
    ) -> None:
        track = make_track(creator, cover_url="https://storage.test/image/x/1")
        audio_url = track.audio_url
        client.post(f"/api/v1/tracks/{track.id}/like", headers=headers_for(listener))

        r = client.delete(f"/api/v1/tracks/{track.id}", headers=headers_for(creator))
        assert r.status_code == status.HTTP_200_OK
        assert gateway.deleted == [audio_url, "https://storage.test/image/x/1"]
        assert _count(db_session, Track) == 0
        assert _count(db_session, Like) == 0

    def test_delete_survives_storage_failure(
        self, client, db_session, creator, make_track, headers_for, gateway
    ) -> None:
        gateway.fail_delete = True
        track = make_track(creator)

        r = client.delete(f"/api/v1/tracks/{track.id}", headers=headers_for(creator))
        assert r.status_code == status.HTTP_200_OK
        assert _count(db_session, Track) == 0


# ---------------------------------------------------------------------------
# Reels
# ---------------------------------------------------------------------------


class TestReels:
    def test_creator_uploads_reel(self, client, creator, headers_for, gateway, upload_files) -> None:
        r = client.post(
            "/api/v1/reels",
            data={"caption": "  studio day  "},
            files=upload_files("video", "video/mp4"),
            headers=headers_for(creator),
        )
        assert r.status_code == status.HTTP_201_CREATED
        data = r.json()["data"]
        assert data["caption"] == "studio day"
        assert data["view_count"] == 0
        assert data["video_url"] == f"https://storage.test/video/{creator.id}/1"

    def test_video_is_required(self, client, creator, headers_for) -> None:
        r = client.post("/api/v1/reels", data={"caption": "hi"}, headers=headers_for(creator))
        assert r.status_code == status.HTTP_400_BAD_REQUEST
        assert r.json()["error"]["message"] == "Video file is required"

    def test_wrong_video_type(self, client, creator, headers_for, upload_files) -> None:
        r = client.post(
            "/api/v1/reels",
            files=upload_files("video", "video/quicktime"),
            headers=headers_for(creator),
        )
        assert r.status_code == status.HTTP_400_BAD_REQUEST
        assert r.json()["error"]["message"] == "Invalid video file type. Allowed types: video/mp4"

    def test_feed_newest_first(self, client, creator, make_reel) -> None:
        make_reel(creator, caption="first", minutes_ago=5)
        make_reel(creator, caption="hidden", is_active=False)
        make_reel(creator, caption="second", minutes_ago=1)

        data = client.get("/api/v1/reels/feed").json()["data"]
        assert [reel["caption"] for reel in data["items"]] == ["second", "first"]

    def test_view_counter(self, client, creator, make_reel) -> None:
        reel = make_reel(creator)
        client.post(f"/api/v1/reels/{reel.id}/view")
        client.post(f"/api/v1/reels/{reel.id}/view")
        assert client.get(f"/api/v1/reels/{reel.id}").json()["data"]["view_count"] == 2

    def test_missing_reel(self, client) -> None:
        r = client.get(f"/api/v1/reels/{uuid.uuid4()}")
        assert r.status_code == status.HTTP_404_NOT_FOUND
        assert r.json()["error"]["message"] == "Reel not found"

    def test_owner_deletes_reel(self, client, db_session, creator, make_reel, headers_for, gateway) -> None:
        reel = make_reel(creator)
        video_url = reel.video_url
        r = client.delete(f"/api/v1/reels/{reel.id}", headers=headers_for(creator))
        assert r.status_code == status.HTTP_200_OK
        assert gateway.deleted == [video_url]
        assert _count(db_session, Reel) == 0

    def test_reel_compensation(self, db_session, creator, gateway) -> None:
        class FailingReelRepository(ReelRepository):
            def create(self, session, item):
                raise RuntimeError("insert failed")

        service = ReelService(FailingReelRepository(), LikeRepository(), gateway)
        video = MediaUpload(content_type="video/mp4", data=b"\x00" * 16)

        with pytest.raises(RuntimeError):
            service.create(db_session, creator.id, ReelCreate(caption="x"), video)
        assert len(gateway.deleted) == 1

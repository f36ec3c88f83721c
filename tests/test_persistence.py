"""Tests for the library file format and snapshot writer."""

from __future__ import annotations

import base64
import json
import logging
from datetime import UTC, datetime
from pathlib import Path
from uuid import UUID

import pytest
from vinyl_tracker.exceptions import SnapshotDecodeError, SnapshotWriteError
from vinyl_tracker.models import Album, AlbumCollection
from vinyl_tracker.models.snapshot import FORMAT_VERSION, LibrarySnapshot
from vinyl_tracker.services.persistence import SnapshotFile, SnapshotWriter
from vinyl_tracker.services.repository import AlbumRepository

ALBUM_ID = "6F1C3C52-7E0A-4F3B-9D5E-2B7A1C0D9E11"
OTHER_ID = "0B0B5E9A-1C2D-4E3F-8A9B-C0D1E2F3A4B5"
COLLECTION_ID = "A1B2C3D4-E5F6-4789-8ABC-DEF012345678"

# Document as written by the mobile app: uppercase UUIDs, naive
# ISO-8601 timestamps, and a key this package does not read.
MOBILE_APP_DOCUMENT = {
    "version": 1,
    "albums": [
        {
            "id": ALBUM_ID,
            "title": "Blue Train",
            "artist": "John Coltrane",
            "year": 1957,
            "genre": "Jazz",
            "notes": "",
            "label": "Blue Note",
            "imageData": base64.b64encode(b"\xff\xd8jpeg").decode("ascii"),
            "dateAdded": "2024-03-01T10:00:00Z",
            "lastUpdated": "2024-03-02T10:00:00",
            "rating": 5,
        }
    ],
    "collections": [
        {
            "id": COLLECTION_ID,
            "name": "Jazz",
            "detail": "",
            "albumIDs": [ALBUM_ID, OTHER_ID],
            "createdAt": "2024-03-01T09:00:00Z",
            "updatedAt": "2024-03-01T09:00:00Z",
        }
    ],
}


def write_document(path: Path, document: dict) -> None:
    path.write_text(json.dumps(document), encoding="utf-8")


class TestLibrarySnapshot:
    """Tests for LibrarySnapshot encoding."""

    def test_encode_uses_fixed_key_names(self) -> None:
        album = Album(title="Blue Train", artist="John Coltrane", cover_image=b"abc")
        collection = AlbumCollection(name="Jazz", album_ids={album.id})

        document = json.loads(LibrarySnapshot.capture([album], [collection]).encode())

        assert document["version"] == FORMAT_VERSION
        record = document["albums"][0]
        assert set(record) == {
            "id",
            "title",
            "artist",
            "year",
            "genre",
            "notes",
            "label",
            "imageData",
            "dateAdded",
            "lastUpdated",
        }
        assert record["imageData"] == base64.b64encode(b"abc").decode("ascii")
        assert set(document["collections"][0]) == {
            "id",
            "name",
            "detail",
            "albumIDs",
            "createdAt",
            "updatedAt",
        }
        assert document["collections"][0]["albumIDs"] == [str(album.id)]

    def test_album_without_cover_encodes_null(self) -> None:
        album = Album(title="A", artist="B")
        document = json.loads(LibrarySnapshot.capture([album], []).encode())
        assert document["albums"][0]["imageData"] is None

    def test_timestamps_are_whole_seconds_utc(self) -> None:
        """Timestamps use the form the mobile app's decoder accepts."""
        stamp = datetime(2024, 3, 1, 10, 0, 0, 987654, tzinfo=UTC)
        album = Album(title="A", artist="B", created_at=stamp, updated_at=stamp)
        collection = AlbumCollection(name="Jazz", created_at=stamp, updated_at=stamp)

        document = json.loads(LibrarySnapshot.capture([album], [collection]).encode())

        assert document["albums"][0]["dateAdded"] == "2024-03-01T10:00:00Z"
        assert document["albums"][0]["lastUpdated"] == "2024-03-01T10:00:00Z"
        assert document["collections"][0]["createdAt"] == "2024-03-01T10:00:00Z"
        assert document["collections"][0]["updatedAt"] == "2024-03-01T10:00:00Z"

    def test_decodes_mobile_app_document(self) -> None:
        """Files written by the mobile app load unchanged."""
        snapshot = LibrarySnapshot.decode(json.dumps(MOBILE_APP_DOCUMENT).encode())

        album = snapshot.albums[0].to_album()
        assert album.id == UUID(ALBUM_ID)
        assert album.title == "Blue Train"
        assert album.cover_image == b"\xff\xd8jpeg"
        assert album.created_at == datetime(2024, 3, 1, 10, 0, 0, tzinfo=UTC)
        # Naive timestamps are taken as UTC
        assert album.updated_at == datetime(2024, 3, 2, 10, 0, 0, tzinfo=UTC)

        collection = snapshot.collections[0].to_collection()
        assert collection.album_ids == {UUID(ALBUM_ID), UUID(OTHER_ID)}

    def test_missing_optional_keys_take_defaults(self) -> None:
        data = json.dumps(
            {
                "version": 1,
                "albums": [{"id": ALBUM_ID, "title": "A", "artist": "B"}],
                "collections": [{"id": COLLECTION_ID, "name": "Jazz"}],
            }
        ).encode()

        snapshot = LibrarySnapshot.decode(data)

        album = snapshot.albums[0].to_album()
        assert album.year is None
        assert album.cover_image is None
        assert album.genre == ""
        assert snapshot.collections[0].album_ids == []

    @pytest.mark.parametrize(
        "data",
        [
            b"",
            b"not json",
            b"[]",
            b'{"albums": 5}',
        ],
        ids=["empty", "garbage", "wrong_root", "albums_not_list"],
    )
    def test_decode_rejects_malformed(self, data: bytes) -> None:
        with pytest.raises(SnapshotDecodeError):
            LibrarySnapshot.decode(data)

    def test_malformed_records_are_skipped(
        self, caplog: pytest.LogCaptureFixture
    ) -> None:
        """One bad record does not take the rest of the document with it."""
        good = {"id": ALBUM_ID, "title": "Blue Train", "artist": "John Coltrane"}
        data = json.dumps(
            {
                "version": 1,
                "albums": [
                    {"title": "missing id", "artist": "B"},
                    {"id": "x", "title": "A", "artist": "B"},
                    {"id": OTHER_ID, "title": "A", "artist": "B", "imageData": "%%%"},
                    {"id": OTHER_ID, "title": "A", "artist": "B", "dateAdded": "?"},
                    "not a record",
                    good,
                ],
                "collections": [
                    {"id": COLLECTION_ID, "name": "Jazz", "albumIDs": ["nope"]},
                    {"id": COLLECTION_ID, "name": "Bebop"},
                ],
            }
        ).encode()

        with caplog.at_level(logging.WARNING):
            snapshot = LibrarySnapshot.decode(data)

        assert [r.id for r in snapshot.albums] == [UUID(ALBUM_ID)]
        assert [r.name for r in snapshot.collections] == ["Bebop"]
        assert caplog.text.count("Skipping malformed album record") == 5
        assert "Skipping malformed collection record at index 0" in caplog.text

    def test_newer_version_is_read_with_warning(
        self, caplog: pytest.LogCaptureFixture
    ) -> None:
        with caplog.at_level(logging.WARNING):
            snapshot = LibrarySnapshot.decode(b'{"version": 99}')

        assert snapshot.version == 99
        assert "newer than supported" in caplog.text


class TestSnapshotFile:
    """Tests for SnapshotFile."""

    def test_load_missing_returns_none(self, tmp_path: Path) -> None:
        assert SnapshotFile(tmp_path / "absent.json").load() is None

    def test_write_then_load(self, tmp_path: Path) -> None:
        file = SnapshotFile(tmp_path / "nested" / "library.json")
        stamp = datetime(2024, 3, 1, 10, 0, 0, tzinfo=UTC)
        album = Album(title="A", artist="B", created_at=stamp, updated_at=stamp)

        file.write(LibrarySnapshot.capture([album], []))

        loaded = file.load()
        assert loaded is not None
        assert loaded.albums[0].to_album() == album

    def test_write_leaves_no_temp_file(self, tmp_path: Path) -> None:
        path = tmp_path / "library.json"
        SnapshotFile(path).write(LibrarySnapshot())
        assert sorted(p.name for p in tmp_path.iterdir()) == ["library.json"]

    def test_write_replaces_previous_content(self, tmp_path: Path) -> None:
        path = tmp_path / "library.json"
        file = SnapshotFile(path)
        file.write(LibrarySnapshot.capture([Album(title="A", artist="B")], []))
        file.write(LibrarySnapshot())

        loaded = file.load()
        assert loaded is not None
        assert loaded.albums == []

    def test_write_failure_raises_and_keeps_old_file(self, tmp_path: Path) -> None:
        """A failed write raises SnapshotWriteError and never truncates."""
        blocker = tmp_path / "not-a-dir"
        blocker.write_text("file in the way")
        file = SnapshotFile(blocker / "library.json")

        with pytest.raises(SnapshotWriteError):
            file.write(LibrarySnapshot())

        assert blocker.read_text() == "file in the way"


class TestSnapshotWriter:
    """Tests for SnapshotWriter."""

    def test_writes_in_submission_order(self, tmp_path: Path) -> None:
        """The last submitted snapshot is what ends up on disk."""
        path = tmp_path / "library.json"
        with SnapshotWriter(SnapshotFile(path)) as writer:
            for i in range(20):
                albums = [Album.placeholder(n) for n in range(i + 1)]
                writer.submit(LibrarySnapshot.capture(albums, []))

        loaded = SnapshotFile(path).load()
        assert loaded is not None
        assert len(loaded.albums) == 20

    def test_flush_waits_for_pending_writes(self, tmp_path: Path) -> None:
        path = tmp_path / "library.json"
        writer = SnapshotWriter(SnapshotFile(path))
        try:
            writer.submit(LibrarySnapshot())
            writer.flush()
            assert path.exists()
        finally:
            writer.close()

    def test_write_failure_is_logged_not_raised(
        self, tmp_path: Path, caplog: pytest.LogCaptureFixture
    ) -> None:
        blocker = tmp_path / "not-a-dir"
        blocker.write_text("")
        writer = SnapshotWriter(SnapshotFile(blocker / "library.json"))

        with caplog.at_level(logging.ERROR):
            future = writer.submit(LibrarySnapshot())
            writer.close()

        assert future is not None
        assert future.exception() is None
        assert "Failed to persist library" in caplog.text

    def test_submit_after_close_is_dropped(
        self, tmp_path: Path, caplog: pytest.LogCaptureFixture
    ) -> None:
        path = tmp_path / "library.json"
        writer = SnapshotWriter(SnapshotFile(path))
        writer.close()
        writer.close()

        with caplog.at_level(logging.WARNING):
            assert writer.submit(LibrarySnapshot()) is None
        writer.flush()

        assert not path.exists()
        assert "snapshot" in caplog.text


class TestRepositoryLoading:
    """Tests for how the repository treats existing library files."""

    def test_loads_mobile_app_file_and_drops_dangling_members(
        self, library_path: Path
    ) -> None:
        """Member ids without a matching album are dropped on load."""
        write_document(library_path, MOBILE_APP_DOCUMENT)

        with AlbumRepository(library_path) as repo:
            assert repo.album_count == 1
            jazz = repo.get_collection(UUID(COLLECTION_ID))
            assert jazz is not None
            assert jazz.is_valid
            assert jazz.album_ids == {UUID(ALBUM_ID)}

    @pytest.mark.parametrize(
        "content",
        [b"{not json", b"[]", b'{"albums": 5}'],
        ids=["syntax", "wrong_root", "wrong_type"],
    )
    def test_corrupt_file_starts_empty(
        self,
        library_path: Path,
        content: bytes,
        caplog: pytest.LogCaptureFixture,
    ) -> None:
        library_path.write_bytes(content)

        with caplog.at_level(logging.WARNING):
            repo = AlbumRepository(library_path)

        try:
            assert repo.album_count == 0
            assert repo.collection_count == 0
            assert "Ignoring unreadable library" in caplog.text
        finally:
            repo.close()

    def test_skips_invalid_records(self, library_path: Path) -> None:
        write_document(
            library_path,
            {
                "version": 1,
                "albums": [
                    {"id": ALBUM_ID, "title": "Blue Train", "artist": "Coltrane"},
                    {"id": OTHER_ID, "title": "  ", "artist": "Nobody"},
                ],
                "collections": [{"id": COLLECTION_ID, "name": " "}],
            },
        )

        with AlbumRepository(library_path) as repo:
            assert [a.title for a in repo.list_albums()] == ["Blue Train"]
            assert repo.collection_count == 0

    def test_malformed_record_keeps_rest_of_library(self, library_path: Path) -> None:
        """A record with undecodable cover data is dropped, not the library."""
        document = json.loads(json.dumps(MOBILE_APP_DOCUMENT))
        document["albums"].append(
            {
                "id": OTHER_ID,
                "title": "Giant Steps",
                "artist": "John Coltrane",
                "imageData": "%%%",
            }
        )
        write_document(library_path, document)

        with AlbumRepository(library_path) as repo:
            assert [a.title for a in repo.list_albums()] == ["Blue Train"]
            jazz = repo.get_collection(UUID(COLLECTION_ID))
            assert jazz is not None
            assert jazz.album_ids == {UUID(ALBUM_ID)}

    def test_write_failure_keeps_memory_state(
        self, tmp_path: Path, caplog: pytest.LogCaptureFixture
    ) -> None:
        """Mutations succeed in memory even when the file cannot be written."""
        blocker = tmp_path / "not-a-dir"
        blocker.write_text("")

        with caplog.at_level(logging.ERROR):
            with AlbumRepository(blocker / "library.json") as repo:
                result = repo.add_album(Album(title="A", artist="B"))
                repo.flush()
                assert result.is_inserted
                assert repo.album_count == 1

        assert "Failed to persist library" in caplog.text

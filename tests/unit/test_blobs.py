"""Tests for local blob storage."""

from recallion.infrastructure.blobs import LocalBlobStore


class TestLocalBlobStore:
    """Tests for LocalBlobStore.release."""

    async def test_release_relative_and_file_urls(self, tmp_path) -> None:
        """Should delete blobs addressed by relative path or file URL."""
        (tmp_path / "img").mkdir()
        first = tmp_path / "img" / "a.png"
        second = tmp_path / "img" / "b.png"
        first.write_bytes(b"a")
        second.write_bytes(b"b")
        blobs = LocalBlobStore(tmp_path)

        await blobs.release("img/a.png")
        await blobs.release(second.resolve().as_uri())

        assert not first.exists()
        assert not second.exists()

    async def test_missing_blob_is_fine(self, tmp_path) -> None:
        """Should treat an already-missing blob as released."""
        await LocalBlobStore(tmp_path).release("gone.png")

    async def test_refuses_paths_outside_root(self, tmp_path) -> None:
        """Should never delete files outside the storage root."""
        root = tmp_path / "blobs"
        root.mkdir()
        outside = tmp_path / "keep.txt"
        outside.write_text("keep")
        blobs = LocalBlobStore(root)

        await blobs.release("../keep.txt")
        await blobs.release(outside.as_uri())
        await blobs.release("https://cdn.example.com/keep.txt")

        assert outside.exists()

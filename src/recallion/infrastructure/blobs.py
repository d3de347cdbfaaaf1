"""Local filesystem blob storage for memory attachments."""

from pathlib import Path
from urllib.parse import unquote, urlparse

from recallion.core.base import ApplicationError, ErrorCode, ErrorLevel, ResourceErrorDetails
from recallion.core.logging import get_logger

logger = get_logger(__name__)


class LocalBlobStore:
    """Blobs stored under ``root``; URLs are ``file://`` or root-relative paths."""

    def __init__(self, root: str | Path):
        self.root = Path(root).resolve()

    def _resolve(self, url: str) -> Path | None:
        parsed = urlparse(url)
        if parsed.scheme not in ("", "file"):
            return None
        path = Path(unquote(parsed.path))
        candidate = (path if path.is_absolute() else self.root / path).resolve()
        # Refuse anything outside the blob root
        if not candidate.is_relative_to(self.root):
            return None
        return candidate

    async def release(self, url: str) -> None:
        path = self._resolve(url)
        if path is None:
            logger.warning("Ignoring blob outside storage root", url=url)
            return
        try:
            path.unlink(missing_ok=True)
        except OSError as e:
            raise ApplicationError(
                message=f"Failed to release blob: {e!s}",
                code=ErrorCode.STORAGE_OPERATION,
                level=ErrorLevel.ERROR,
                details=ResourceErrorDetails(
                    source="LocalBlobStore",
                    operation="release",
                    resource_id=url,
                    resource_type="blob",
                    action="delete",
                ),
            ) from e
        logger.debug("Released blob", path=str(path))

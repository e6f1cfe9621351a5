"""
Temporary artifact storage for decoded uploads.

While a request is processed, the decoded bytes are kept in a store so they
can be inspected when something goes wrong. The artifact belongs to exactly
one request and is removed before the response leaves, on every exit path.

Two backends:
- LocalArtifactStore: a directory on disk (default, UPLOADS_DIR)
- SupabaseArtifactStore: a Supabase Storage bucket (ARTIFACT_BACKEND=supabase)
"""

import logging
import os
import time
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator, Optional, Protocol
from uuid import uuid4

from supabase import Client

logger = logging.getLogger(__name__)


class ArtifactStore(Protocol):
    """Where temporary artifacts live while a request runs."""

    def save(self, data: bytes, name: str, content_type: str) -> str:
        """Persist data and return its location."""
        ...

    def delete(self, location: str) -> None:
        """Remove the artifact at location. Missing artifacts are not an error."""
        ...


class LocalArtifactStore:
    """Artifacts as files in a local directory."""

    def __init__(self, directory: str | Path):
        self.directory = Path(directory)

    def save(self, data: bytes, name: str, content_type: str) -> str:
        self.directory.mkdir(parents=True, exist_ok=True)
        # Unique prefix so concurrent requests with the same filename never collide
        path = self.directory / f"{uuid4().hex}_{name}"
        path.write_bytes(data)
        return str(path)

    def delete(self, location: str) -> None:
        Path(location).unlink(missing_ok=True)


class SupabaseArtifactStore:
    """Artifacts as objects in a Supabase Storage bucket."""

    def __init__(self, supabase_client: Client, bucket: str):
        self.client = supabase_client
        self.bucket = bucket

    def save(self, data: bytes, name: str, content_type: str) -> str:
        storage_path = f"tmp/{uuid4()}/{name}"
        self.client.storage.from_(self.bucket).upload(
            path=storage_path,
            file=data,
            file_options={"content-type": content_type}
        )
        return storage_path

    def delete(self, location: str) -> None:
        self.client.storage.from_(self.bucket).remove([location])


class TemporaryArtifact:
    """
    Handle to one persisted artifact.

    release() is idempotent: calling it again (e.g. once before an early
    return and once from a cleanup handler) does nothing. Failures while
    deleting are logged and never raised, so they cannot replace the
    response of the request.
    """

    def __init__(self, store: ArtifactStore, location: str):
        self.store = store
        self.location = location
        self._released = False

    @property
    def released(self) -> bool:
        return self._released

    def release(self) -> None:
        if self._released:
            return
        self._released = True
        try:
            self.store.delete(self.location)
            logger.debug(f"Released temporary artifact: {self.location}")
        except Exception as e:
            logger.error(
                f"Failed to release temporary artifact {self.location}: {e}",
                exc_info=True
            )


def artifact_name(filename: Optional[str], kind: Optional[str], extension: str = "bin") -> str:
    """
    Build a safe artifact name.

    Uses the basename of the client filename when given, otherwise
    archivo_<ms>.pdf for PDFs and imagen_<ms>.<extension> for everything else.
    """
    if filename:
        safe = os.path.basename(filename.replace("\\", "/")).strip()
        if safe and safe not in (".", ".."):
            return safe

    millis = int(time.time() * 1000)
    if kind == "pdf":
        return f"archivo_{millis}.pdf"
    return f"imagen_{millis}.{extension}"


@contextmanager
def temporary_artifact(
    store: Optional[ArtifactStore],
    data: bytes,
    name: str,
    content_type: str,
) -> Iterator[Optional[TemporaryArtifact]]:
    """
    Persist data for the duration of a with-block and always release it.

    Yields None when no store is configured or when persisting fails; the
    artifact is a debugging aid and never blocks the request.
    """
    if store is None:
        yield None
        return

    location = None
    try:
        location = store.save(data, name, content_type)
        logger.info(
            f"Saved temporary artifact: name={name}, size={len(data)} bytes, "
            f"content_type={content_type}"
        )
    except Exception as e:
        logger.error(f"Failed to save temporary artifact {name}: {e}", exc_info=True)

    if location is None:
        yield None
        return

    artifact = TemporaryArtifact(store, location)
    try:
        yield artifact
    finally:
        artifact.release()


def build_artifact_store(settings) -> Optional[ArtifactStore]:
    """Create the artifact store configured in settings, or None when disabled."""
    if not settings.SAVE_UPLOADS:
        return None

    if settings.ARTIFACT_BACKEND == "supabase":
        from docflow.db.client import get_supabase_client

        return SupabaseArtifactStore(get_supabase_client(), settings.SUPABASE_STORAGE_BUCKET)

    return LocalArtifactStore(settings.UPLOADS_DIR)

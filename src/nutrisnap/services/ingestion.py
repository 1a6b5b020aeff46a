"""Ingestion pipeline turning a food photo into a stored log entry.

Stages run strictly in order: validate, store the image, analyze it, build
the entry and persist it. Any failure after the image is stored removes the
image again, so a failed submission leaves no durable trace unless the removal
itself fails, in which case the terminal error names the orphaned reference.

Storage and database calls run in worker threads, which keep running after a
timeout or cancellation stops waiting for them. Abandoned calls are tracked
and awaited before the pipeline decides what to clean up: an image is only
removed once no write that could reference it is still in flight, and an
entry whose insert lands late is reported as logged.
"""

import asyncio
import logging
from collections.abc import Awaitable, Callable, Iterable
from dataclasses import dataclass
from datetime import UTC, datetime
from enum import StrEnum
from typing import Any, Protocol, TypeVar
from uuid import UUID, uuid4

from nutrisnap.domain.analysis import FoodAnalysis
from nutrisnap.domain.food_logs import FoodLogEntry, StoredImage
from nutrisnap.errors import (
    AnalysisError,
    IngestionError,
    NutriSnapError,
    PersistenceError,
    StageTimeoutError,
    StorageError,
    ValidationError,
)
from nutrisnap.services.analysis import (
    IMAGE_EXTENSIONS,
    AnalysisClient,
    detect_mime_type,
    encode_image,
    parse_analysis,
)

_logger = logging.getLogger(__name__)

T = TypeVar("T")

DEFAULT_MAX_IMAGE_BYTES = 10 * 1024 * 1024

_MIME_ALIASES = {"image/jpg": "image/jpeg", "image/pjpeg": "image/jpeg"}
_GENERIC_MIME_TYPES = {"", "application/octet-stream"}


class IngestionStage(StrEnum):
    """Stages of a food image submission."""

    VALIDATE = "validate"
    STORE_IMAGE = "store_image"
    ANALYZE = "analyze"
    BUILD_ENTRY = "build_entry"
    PERSIST_ENTRY = "persist_entry"


class BlobStore(Protocol):
    """Durable storage for submitted images."""

    def put(self, key: str, image_bytes: bytes, content_type: str) -> str:
        """Store image bytes under a key and return a durable reference.

        Writing the same key twice must overwrite rather than fail.
        """

    def url_of(self, image_ref: str) -> str:
        """Return a URL for a stored image."""

    def remove(self, image_ref: str) -> None:
        """Delete a stored image; removing a missing image is not an error."""


class FoodLogRepository(Protocol):
    """Persistence interface for new food log entries."""

    def insert_food_log(self, entry: FoodLogEntry) -> None:
        """Persist an entry; inserting the same id twice must not duplicate it."""


_STAGE_ERRORS: dict[IngestionStage, type[NutriSnapError]] = {
    IngestionStage.STORE_IMAGE: StorageError,
    IngestionStage.ANALYZE: AnalysisError,
    IngestionStage.BUILD_ENTRY: ValidationError,
    IngestionStage.PERSIST_ENTRY: PersistenceError,
}

_RETRYABLE_ERRORS = (StorageError, AnalysisError, PersistenceError, StageTimeoutError)


def _utc_now() -> datetime:
    return datetime.now(tz=UTC)


def build_image_key(user_id: UUID, extension: str, submitted_at: datetime) -> str:
    """Build an object key from the owner, submission time and a random suffix."""
    millis = int(submitted_at.timestamp() * 1000)
    return f"{user_id}/{millis}-{uuid4().hex[:8]}.{extension}"


@dataclass
class IngestionPipeline:
    """Orchestrates image storage, analysis and food log persistence."""

    blob_store: BlobStore
    analysis_client: AnalysisClient
    repository: FoodLogRepository
    max_image_bytes: int = DEFAULT_MAX_IMAGE_BYTES
    storage_timeout_seconds: float | None = 20.0
    analysis_timeout_seconds: float | None = 60.0
    persistence_timeout_seconds: float | None = 20.0
    retry_attempts: int = 0
    retry_delay_seconds: float = 0.5
    clock: Callable[[], datetime] = _utc_now

    async def submit_food_image(
        self, user_id: UUID, image_bytes: bytes, mime_type: str | None = None
    ) -> FoodLogEntry:
        """Store, analyze and log a food image.

        Raises IngestionError tagged with the failed stage. The error's cause
        is one of ValidationError, StorageError, AnalysisError,
        PersistenceError or StageTimeoutError.
        """
        try:
            content_type = self._validate(image_bytes, mime_type)
        except ValidationError as exc:
            _logger.warning("Rejected food image for user %s: %s", user_id, exc)
            raise IngestionError(IngestionStage.VALIDATE, exc) from exc

        key = build_image_key(user_id, IMAGE_EXTENSIONS[content_type], self.clock())
        uploads: list[asyncio.Future[Any]] = []
        try:
            stored = await self._store_image(key, image_bytes, content_type, uploads)
        except NutriSnapError as exc:
            _logger.warning("Image upload failed for user %s: %s", user_id, exc)
            orphaned = None
            if _may_have_written(uploads):
                orphaned = await self._remove_image(key, uploads)
            raise IngestionError(
                IngestionStage.STORE_IMAGE, exc, orphaned_image_ref=orphaned
            ) from exc
        except asyncio.CancelledError:
            if _may_have_written(uploads):
                await asyncio.shield(self._remove_image(key, uploads))
            raise

        inserts: list[asyncio.Future[Any]] = []
        stage = IngestionStage.ANALYZE
        try:
            analysis = await self._analyze(image_bytes, content_type)
            stage = IngestionStage.BUILD_ENTRY
            entry = self._build_entry(user_id, stored, analysis)
            stage = IngestionStage.PERSIST_ENTRY
            await self._call_stage(
                stage,
                lambda: asyncio.to_thread(self.repository.insert_food_log, entry),
                self.persistence_timeout_seconds,
                inserts,
            )
        except NutriSnapError as exc:
            _logger.warning(
                "Ingestion %s failed for user %s: %s", stage, user_id, exc
            )
            logged, orphaned = await self._release_image(stored, inserts)
            if not logged:
                raise IngestionError(stage, exc, orphaned_image_ref=orphaned) from exc
            _logger.warning("Insert of entry %s completed after %s", entry.id, exc)
        except asyncio.CancelledError:
            await asyncio.shield(self._release_image(stored, inserts))
            raise

        _logger.info(
            "Logged food entry: user=%s entry=%s food=%s",
            user_id,
            entry.id,
            entry.food_name,
        )
        return entry

    def _validate(self, image_bytes: bytes, mime_type: str | None) -> str:
        if not image_bytes:
            raise ValidationError("No image provided")
        if len(image_bytes) > self.max_image_bytes:
            raise ValidationError(
                f"Image is {len(image_bytes)} bytes; limit is {self.max_image_bytes}"
            )
        content_type = _normalize_mime_type(mime_type) or detect_mime_type(
            image_bytes
        )
        if content_type not in IMAGE_EXTENSIONS:
            raise ValidationError(f"Unsupported image type: {content_type}")
        return content_type

    async def _store_image(
        self,
        key: str,
        image_bytes: bytes,
        content_type: str,
        uploads: list[asyncio.Future[Any]],
    ) -> StoredImage:
        ref = await self._call_stage(
            IngestionStage.STORE_IMAGE,
            lambda: asyncio.to_thread(
                self.blob_store.put, key, image_bytes, content_type
            ),
            self.storage_timeout_seconds,
            uploads,
        )
        return StoredImage(
            ref=ref, content_type=content_type, size_bytes=len(image_bytes)
        )

    async def _analyze(self, image_bytes: bytes, content_type: str) -> FoodAnalysis:
        image_base64 = encode_image(image_bytes)
        raw = await self._call_stage(
            IngestionStage.ANALYZE,
            lambda: self.analysis_client.analyze(image_base64, content_type),
            self.analysis_timeout_seconds,
        )
        return parse_analysis(raw)

    def _build_entry(
        self, user_id: UUID, stored: StoredImage, analysis: FoodAnalysis
    ) -> FoodLogEntry:
        nutrition = analysis.nutrition
        return FoodLogEntry(
            id=uuid4(),
            user_id=user_id,
            food_name=analysis.food_name,
            image_ref=stored.ref,
            calories=nutrition.calories,
            protein=nutrition.protein,
            carbohydrates=nutrition.carbohydrates,
            fats=nutrition.fats,
            sugar=nutrition.sugar,
            sodium=nutrition.sodium,
            confidence_score=analysis.confidence,
            serving_size=analysis.serving_size,
            captured_at=self.clock(),
        )

    async def _release_image(
        self, stored: StoredImage, inserts: list[asyncio.Future[Any]]
    ) -> tuple[bool, str | None]:
        """Decide the image's fate after the entry could not be confirmed.

        Returns whether the entry was logged after all, and the image
        reference when it is left behind without a confirmed entry.
        """
        settled = await _settle(inserts, self.persistence_timeout_seconds)
        if any(_succeeded(insert) for insert in inserts):
            return True, None
        if not settled:
            _logger.warning(
                "Insert referencing image %s did not finish, keeping the image",
                stored.ref,
            )
            return False, stored.ref
        return False, await self._remove_image(stored.ref)

    async def _remove_image(
        self, image_ref: str, uploads: Iterable[asyncio.Future[Any]] = ()
    ) -> str | None:
        """Remove an image whose entry was never created.

        Waits for abandoned uploads of the image first. Returns the reference
        when the image may be left orphaned.
        """
        if not await _settle(uploads, self.storage_timeout_seconds):
            _logger.warning("Upload of image %s did not finish", image_ref)
            return image_ref
        try:
            await _attempt(
                IngestionStage.STORE_IMAGE,
                lambda: asyncio.to_thread(self.blob_store.remove, image_ref),
                self.storage_timeout_seconds,
            )
        except NutriSnapError:
            _logger.exception("Failed to remove orphaned image %s", image_ref)
            return image_ref
        _logger.info("Removed image %s after failed ingestion", image_ref)
        return None

    async def _call_stage(
        self,
        stage: IngestionStage,
        func: Callable[[], Awaitable[T]],
        timeout: float | None,
        calls: list[asyncio.Future[Any]] | None = None,
    ) -> T:
        """Run an external call with a time limit and optional retries.

        When ``calls`` is given, each attempt is shielded from the timeout and
        recorded there so its eventual outcome can still be inspected.
        """
        attempt = 0
        while True:
            try:
                return await _attempt(stage, func, timeout, calls)
            except _RETRYABLE_ERRORS as exc:
                attempt += 1
                if attempt > self.retry_attempts:
                    raise
                _logger.warning(
                    "Ingestion %s failed (attempt %s/%s): %s",
                    stage,
                    attempt,
                    self.retry_attempts + 1,
                    exc,
                )
                await asyncio.sleep(self.retry_delay_seconds * 2 ** (attempt - 1))


async def _attempt(
    stage: IngestionStage,
    func: Callable[[], Awaitable[T]],
    timeout: float | None,
    calls: list[asyncio.Future[Any]] | None = None,
) -> T:
    try:
        if calls is None:
            return await asyncio.wait_for(func(), timeout=timeout)
        call = asyncio.ensure_future(func())
        calls.append(call)
        return await asyncio.wait_for(asyncio.shield(call), timeout=timeout)
    except TimeoutError as exc:
        raise StageTimeoutError(f"{stage} timed out after {timeout}s") from exc
    except NutriSnapError:
        raise
    except Exception as exc:
        raise _STAGE_ERRORS[stage](f"{stage} failed: {exc}") from exc


async def _settle(
    calls: Iterable[asyncio.Future[Any]], timeout: float | None
) -> bool:
    """Wait for in-flight calls; return True once none is still running."""
    pending = {call for call in calls if not call.done()}
    if pending:
        _, pending = await asyncio.wait(pending, timeout=timeout)
    return not pending


def _succeeded(call: asyncio.Future[Any]) -> bool:
    return call.done() and not call.cancelled() and call.exception() is None


def _may_have_written(calls: Iterable[asyncio.Future[Any]]) -> bool:
    return any(not call.done() or _succeeded(call) for call in calls)


def _normalize_mime_type(mime_type: str | None) -> str | None:
    if mime_type is None:
        return None
    cleaned = mime_type.split(";", maxsplit=1)[0].strip().lower()
    if cleaned in _GENERIC_MIME_TYPES:
        return None
    return _MIME_ALIASES.get(cleaned, cleaned)

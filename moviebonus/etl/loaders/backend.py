"""Primary persistence path: the external save backend.

Posts the whole batch to the backend's save endpoint in one request.
Any transport failure, non-2xx status or ``success: false`` answer is a
``PersistencePrimaryFailure``, which makes the gateway fall back.
"""

import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import date
from typing import Any

import httpx

from moviebonus.etl.errors import PersistencePrimaryFailure
from moviebonus.etl.loaders.mapping import backend_payload
from moviebonus.etl.schemas import ErrorKind, ErrorRecord, MergedMovieRecord
from moviebonus.settings.api import BackendSettings

logger = logging.getLogger(__name__)

SAVE_ENDPOINT = "/api/save-movies"


@dataclass(frozen=True)
class BackendSaveResult:
    """Answer of a successful save call."""

    saved: int
    skipped: int = 0
    message: str = ""
    errors: tuple[ErrorRecord, ...] = field(default_factory=tuple)


class BackendWriter:
    """Client of the primary save backend."""

    name = "backend"

    def __init__(
        self,
        settings: BackendSettings,
        transport: httpx.AsyncBaseTransport | None = None,
        today: Callable[[], date] = date.today,
    ) -> None:
        """Initialize backend writer.

        Args:
            settings: Backend URL, token and timeout.
            transport: Optional httpx transport (tests).
            today: Clock used to derive screening status.

        Raises:
            ValueError: If no backend URL is configured.
        """
        if not settings.url:
            raise ValueError("PYTHON_BACKEND_URL is not configured")
        self._settings = settings
        self._transport = transport
        self._today = today

    @property
    def endpoint(self) -> str:
        """Full URL of the save endpoint."""
        return f"{(self._settings.url or '').rstrip('/')}{SAVE_ENDPOINT}"

    async def save(self, records: list[MergedMovieRecord]) -> BackendSaveResult:
        """Send a batch to the backend.

        Args:
            records: Merged records to persist.

        Returns:
            BackendSaveResult with the backend's counts.

        Raises:
            PersistencePrimaryFailure: If the batch was not accepted.
        """
        today = self._today()
        body = {
            "movies": [backend_payload(record, today) for record in records],
            "protect_manual": True,
        }
        headers = {"Content-Type": "application/json"}
        if self._settings.token:
            headers["Authorization"] = f"Bearer {self._settings.token}"

        try:
            async with httpx.AsyncClient(
                timeout=self._settings.timeout,
                transport=self._transport,
            ) as client:
                response = await client.post(self.endpoint, json=body, headers=headers)
        except httpx.HTTPError as e:
            raise PersistencePrimaryFailure(f"Backend unreachable: {type(e).__name__}: {e}") from e

        if not response.is_success:
            raise PersistencePrimaryFailure(
                f"Backend returned HTTP {response.status_code}: {response.text[:200]}"
            )

        try:
            data = response.json()
        except ValueError as e:
            raise PersistencePrimaryFailure("Backend returned invalid JSON") from e

        if not isinstance(data, dict) or not data.get("success"):
            message = data.get("message") if isinstance(data, dict) else None
            raise PersistencePrimaryFailure(f"Backend refused batch: {message or 'no message'}")

        result = BackendSaveResult(
            saved=int(data.get("successful_saves", len(records))),
            skipped=int(data.get("skipped_count", 0)),
            message=str(data.get("message", "")),
            errors=tuple(self._parse_errors(data.get("errors"))),
        )
        logger.info(f"✅ Backend saved {result.saved}/{len(records)} movies")
        return result

    @staticmethod
    def _parse_errors(raw: Any) -> list[ErrorRecord]:
        """Convert the backend's per-movie errors to error records."""
        errors = []
        for item in raw or []:
            if isinstance(item, dict):
                errors.append(
                    ErrorRecord(
                        kind=ErrorKind.PERSISTENCE_PRIMARY,
                        message=str(item.get("message") or item.get("error") or item),
                        external_id=item.get("external_id"),
                    )
                )
            else:
                errors.append(ErrorRecord(kind=ErrorKind.PERSISTENCE_PRIMARY, message=str(item)))
        return errors

"""Base source adapter abstract class.

Every upstream source (metadata API, cinema sites, social feeds,
editorial listings) implements this contract. ``fetch`` never raises
for an upstream failure: it returns an ``AdapterResult`` carrying either
the items or a typed ``SourceFetchError``.
"""

import logging
from abc import ABC, abstractmethod
from collections.abc import Sequence
from dataclasses import dataclass
from datetime import datetime
from typing import Self

from moviebonus.etl.errors import SourceFetchError
from moviebonus.etl.schemas import CanonicalMovieSeed, RawBonusObservation, TrackedTitle

SourceItem = CanonicalMovieSeed | RawBonusObservation | TrackedTitle


@dataclass(frozen=True)
class AdapterResult:
    """Outcome of one adapter invocation.

    Attributes:
        source: Adapter name.
        items: Produced seeds, observations or tracked titles.
        error: Set when the adapter failed as a whole.
        warnings: Partial failures that did not stop the adapter.
        duration_seconds: Wall-clock time of the fetch.
    """

    source: str
    items: tuple[SourceItem, ...] = ()
    error: SourceFetchError | None = None
    warnings: tuple[str, ...] = ()
    duration_seconds: float = 0.0

    @property
    def success(self) -> bool:
        """Whether the adapter produced a usable result."""
        return self.error is None

    @classmethod
    def failed(cls, source: str, error: SourceFetchError, duration_seconds: float = 0.0) -> Self:
        """Build a failed result."""
        return cls(source=source, error=error, duration_seconds=duration_seconds)

    def seeds(self) -> list[CanonicalMovieSeed]:
        """Canonical movie seeds among the items."""
        return [item for item in self.items if isinstance(item, CanonicalMovieSeed)]

    def observations(self) -> list[RawBonusObservation]:
        """Raw bonus observations among the items."""
        return [item for item in self.items if isinstance(item, RawBonusObservation)]

    def tracked_titles(self) -> list[TrackedTitle]:
        """Editorial titles among the items."""
        return [item for item in self.items if isinstance(item, TrackedTitle)]


class SourceAdapter(ABC):
    """Abstract base class for all source adapters.

    Subclasses implement ``_fetch`` and may raise anything from it; the
    public ``fetch`` converts failures to a failed ``AdapterResult``.
    Cancellation is not an upstream failure and always propagates.

    Attributes:
        name: Adapter identifier (e.g., 'tmdb', 'cinema').
        logger: Logger instance for this adapter.
    """

    name: str = "base"

    def __init__(self) -> None:
        """Initialize base adapter."""
        self._logger = logging.getLogger(f"etl.{self.name}")
        self._start_time: datetime | None = None
        self._warnings: list[str] = []

    @property
    def logger(self) -> logging.Logger:
        """Get the logger instance."""
        return self._logger

    async def fetch(self) -> AdapterResult:
        """Run the adapter and capture its outcome.

        Returns:
            AdapterResult with items, or with the error that stopped it.
        """
        self._start_fetch()
        try:
            items = await self._fetch()
        except SourceFetchError as e:
            self._logger.error(f"❌ {self.name} failed: {e.detail}")
            return AdapterResult.failed(self.name, e, self._calculate_duration())
        except Exception as e:
            self._logger.exception(f"❌ {self.name} failed unexpectedly")
            error = SourceFetchError(self.name, f"{type(e).__name__}: {e}")
            return AdapterResult.failed(self.name, error, self._calculate_duration())

        return self._end_fetch(items)

    @abstractmethod
    async def _fetch(self) -> Sequence[SourceItem]:
        """Fetch items from the upstream source.

        Returns:
            Produced items.

        Raises:
            SourceFetchError: When the source cannot produce anything.
        """

    def _start_fetch(self) -> None:
        """Mark the start of a fetch."""
        self._start_time = datetime.now()
        self._warnings = []
        self._logger.info(f"Starting {self.name} fetch")

    def _end_fetch(self, items: Sequence[SourceItem]) -> AdapterResult:
        """Mark the end of a fetch and build the result."""
        duration = self._calculate_duration()
        self._logger.info(
            f"Completed {self.name} fetch: {len(items)} items in {duration:.2f}s"
            + (f" ({len(self._warnings)} warnings)" if self._warnings else "")
        )
        return AdapterResult(
            source=self.name,
            items=tuple(items),
            warnings=tuple(self._warnings),
            duration_seconds=duration,
        )

    def _calculate_duration(self) -> float:
        """Calculate fetch duration in seconds."""
        if self._start_time is None:
            return 0.0
        return (datetime.now() - self._start_time).total_seconds()

    def _warn(self, message: str) -> None:
        """Log and keep a non-fatal failure.

        Args:
            message: Warning to surface in the run report.
        """
        self._logger.warning(message)
        self._warnings.append(message)

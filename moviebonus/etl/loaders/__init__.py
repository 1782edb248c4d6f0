"""Persistence of merged records (primary backend and direct database)."""

from moviebonus.etl.loaders.backend import BackendSaveResult, BackendWriter
from moviebonus.etl.loaders.base import LoaderStats, RecordWriteResult, WriteAction
from moviebonus.etl.loaders.direct import DirectWriter
from moviebonus.etl.loaders.gateway import PersistenceGateway
from moviebonus.etl.loaders.mapping import backend_payload, bonus_key, movie_status

__all__ = [
    "BackendSaveResult",
    "BackendWriter",
    "DirectWriter",
    "LoaderStats",
    "PersistenceGateway",
    "RecordWriteResult",
    "WriteAction",
    "backend_payload",
    "bonus_key",
    "movie_status",
]

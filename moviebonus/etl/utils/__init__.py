"""ETL utilities package: logging and keyed locks."""

from moviebonus.etl.utils.locks import KeyedLock
from moviebonus.etl.utils.logger import setup_logger

__all__ = ["KeyedLock", "setup_logger"]

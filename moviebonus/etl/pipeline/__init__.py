"""Sync pipeline package.

Public API:
    - SyncCoordinator: one scrape-merge-sync run
    - run_sync: build everything from settings and run once
"""

from moviebonus.etl.pipeline.orchestrator import (
    SyncCoordinator,
    SyncStage,
    build_adapters,
    build_gateway,
    run_sync,
)

__all__ = [
    "SyncCoordinator",
    "SyncStage",
    "build_adapters",
    "build_gateway",
    "run_sync",
]

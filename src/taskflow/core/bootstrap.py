# src/taskflow/core/bootstrap.py

"""
Composition root:
- configures logging from settings,
- ensures local (gitignored) directories exist,
- opens the durable store (optionally behind a write-behind buffer),
- builds the TaskRepository on top of it,
- starts the periodic flush when writes are buffered.
"""

from __future__ import annotations

import asyncio
import logging
from pathlib import Path

from ..config import Settings, get_settings
from ..logging_setup import setup_logging
from ..storage.buffered import BufferedKeyValueStore, run_flush_loop
from ..storage.kv_store import SQLiteKeyValueStore
from ..tasks.task_models import utc_now
from ..tasks.task_repo import TaskRepository
from .ports import Clock, KeyValueStore
from .state import BoardState

logger = logging.getLogger(__name__)


def _ensure_local_dirs(settings: Settings) -> None:
    settings.data_dir.mkdir(parents=True, exist_ok=True)
    settings.store_db_path.parent.mkdir(parents=True, exist_ok=True)


def configure_logging(settings: Settings | None = None) -> Path:
    """Set up logging under settings.data_dir with the console level from settings.log_level."""
    if settings is None:
        settings = get_settings()

    level_name = str(settings.log_level).upper()
    console_level = getattr(logging, level_name, logging.INFO)
    if not isinstance(console_level, int):
        console_level = logging.INFO

    log_file = setup_logging(log_dir=settings.data_dir, console_level=console_level)
    logger.info("Starting %s...", settings.app_name)
    return log_file


def create_board_state(
    *,
    settings: Settings | None = None,
    store: KeyValueStore | None = None,
    clock: Clock | None = None,
) -> BoardState:
    """
    Build BoardState from the provided settings.

    settings/store/clock are injectable for tests; settings falls back to get_settings()
    and store to the SQLite file at settings.store_db_path.
    """
    if settings is None:
        settings = get_settings()

    if store is None:
        _ensure_local_dirs(settings)
        store = SQLiteKeyValueStore(settings.store_db_path)

    buffer: BufferedKeyValueStore | None = None
    repo_store: KeyValueStore = store
    if settings.buffered_writes:
        buffer = BufferedKeyValueStore(store)
        repo_store = buffer

    repo = TaskRepository(
        repo_store,
        settings.tasks_key,
        clock=clock or utc_now,
        seed_on_empty=settings.seed_on_empty,
        due_soon_days=settings.due_soon_days,
    )
    logger.info(
        "Board ready key=%s buffered=%s tasks=%d",
        settings.tasks_key,
        buffer is not None,
        len(repo.snapshot()),
    )
    return BoardState(settings=settings, store=store, repo=repo, buffer=buffer)


def shutdown(state: BoardState) -> bool:
    """Flush buffered writes (if any). Returns False if some writes could not be stored."""
    if state.buffer is None:
        return True
    ok = state.buffer.flush()
    if not ok:
        logger.warning("Shutdown: %d buffered key(s) not written", len(state.buffer.pending_keys()))
    return ok


def start_flush_loop(state: BoardState) -> asyncio.Task[None] | None:
    """
    Start the periodic flush for a buffered board on the running event loop.

    Returns None when writes are not buffered. Cancel the returned task to stop it;
    it flushes once more on the way out.
    """
    if state.buffer is None:
        return None
    return asyncio.create_task(
        run_flush_loop(
            state.buffer,
            interval_seconds=state.settings.flush_interval_seconds,
        )
    )

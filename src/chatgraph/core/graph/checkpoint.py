"""Checkpoint storage for resumable threads.

A checkpoint store maps a thread id to the latest persisted
``ConversationState``. The engine writes a checkpoint when a turn suspends or
when a threaded turn completes, and reads it to hydrate ``invoke`` and
``resume``. Records are never deleted by the engine.

The store is created once by the process entry point and passed to every
graph it builds.
"""

import asyncio
from datetime import datetime, timezone
from typing import Dict, Optional, Protocol, runtime_checkable

from pydantic import BaseModel, Field

from chatgraph.core.graph.state import ConversationState
from chatgraph.core.logging import get_logger, LogComponent

logger = get_logger(LogComponent.CHECKPOINT)


class Checkpoint(BaseModel):
    """A persisted snapshot of one thread."""
    thread_id: str
    state: ConversationState
    revision: int = 1
    updated_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))


@runtime_checkable
class CheckpointStore(Protocol):
    """Keyed store of the latest state per thread."""

    async def get(self, thread_id: str) -> Optional[Checkpoint]:
        ...

    async def put(self, thread_id: str, state: ConversationState) -> Checkpoint:
        ...


class MemoryCheckpointStore:
    """In-process checkpoint store.

    States are stored as serialized JSON, so callers never share live objects
    with the store and a loaded state carries nothing that was not persisted.
    """

    def __init__(self) -> None:
        self._records: Dict[str, str] = {}
        self._lock = asyncio.Lock()

    async def get(self, thread_id: str) -> Optional[Checkpoint]:
        raw = self._records.get(thread_id)
        if raw is None:
            return None
        return Checkpoint.model_validate_json(raw)

    async def put(self, thread_id: str, state: ConversationState) -> Checkpoint:
        async with self._lock:
            previous = self._records.get(thread_id)
            revision = Checkpoint.model_validate_json(previous).revision + 1 if previous else 1
            checkpoint = Checkpoint(thread_id=thread_id, state=state, revision=revision)
            self._records[thread_id] = checkpoint.model_dump_json()

        logger.debug(f"Saved checkpoint for thread {thread_id} (revision {revision})")
        return checkpoint

    def __contains__(self, thread_id: str) -> bool:
        return thread_id in self._records

    def __len__(self) -> int:
        return len(self._records)

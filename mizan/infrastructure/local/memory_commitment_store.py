"""
In-memory implementation of the commitment store.
"""

from __future__ import annotations

from typing import Iterable, Optional
from uuid import UUID

from mizan.core.exceptions import NotFoundError, StoreError
from mizan.core.logger import setup_logger
from mizan.interfaces.commitment_store import ICommitmentStore
from mizan.models.commitment import Commitment

logger = setup_logger(__name__)


class InMemoryCommitmentStore(ICommitmentStore):
    """
    Commitment store kept in a dict.

    The last saved state is kept as (live object, copy) pairs; a failed
    save() restores it, so a retried intent starts from a clean slate.
    ``fail_on_save`` makes the next flushes raise StoreError, and
    ``save_count`` counts successful flushes.
    """

    def __init__(self, commitments: Optional[Iterable[Commitment]] = None):
        self._commitments: dict[UUID, Commitment] = {}
        for commitment in commitments or []:
            self._commitments[commitment.id] = commitment
        self._saved = self._snapshot()
        self.fail_on_save = False
        self.save_count = 0

    def fetch_all(self) -> list[Commitment]:
        return list(self._commitments.values())

    def get(self, commitment_id: UUID) -> Optional[Commitment]:
        return self._commitments.get(commitment_id)

    def insert(self, commitment: Commitment) -> None:
        self._commitments[commitment.id] = commitment

    def delete(self, commitment: Commitment) -> None:
        if commitment.id not in self._commitments:
            raise NotFoundError(f"Commitment {commitment.id} not found")
        del self._commitments[commitment.id]

    async def save(self) -> None:
        if self.fail_on_save:
            pending = len(self._commitments)
            self.rollback()
            logger.error("Commitment store is set to fail on save, staged changes discarded")
            raise StoreError("Failed to save commitments", details={"pending": pending})
        self._saved = self._snapshot()
        self.save_count += 1

    def rollback(self) -> None:
        """Discard staged changes and return to the last saved state."""
        restored: dict[UUID, Commitment] = {}
        for commitment_id, (live, saved) in self._saved.items():
            # Callers may hold live references, so fields are restored in place
            for name in Commitment.model_fields:
                setattr(live, name, getattr(saved, name))
            restored[commitment_id] = live
        self._commitments = restored

    def _snapshot(self) -> dict[UUID, tuple[Commitment, Commitment]]:
        return {
            commitment_id: (commitment, commitment.model_copy(deep=True))
            for commitment_id, commitment in self._commitments.items()
        }

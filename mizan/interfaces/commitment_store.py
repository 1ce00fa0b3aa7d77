"""
Commitment store interface.

Defines the contract for the externally owned commitment collection.
The engine borrows the collection for one dispatch and flushes through save().
"""

from __future__ import annotations

from abc import ABC, abstractmethod

from mizan.models.commitment import Commitment


class ICommitmentStore(ABC):
    """Abstract interface for commitment persistence."""

    @abstractmethod
    def fetch_all(self) -> list[Commitment]:
        """
        Get every commitment.

        Returns:
            Live commitment objects; field writes on them are staged
            until the next save()
        """
        pass

    @abstractmethod
    def insert(self, commitment: Commitment) -> None:
        """
        Stage a new commitment.

        Args:
            commitment: Commitment to add
        """
        pass

    @abstractmethod
    def delete(self, commitment: Commitment) -> None:
        """
        Stage removal of a commitment.

        Args:
            commitment: Commitment to remove

        Raises:
            NotFoundError: If the commitment is not in the store
        """
        pass

    @abstractmethod
    async def save(self) -> None:
        """
        Flush staged changes.

        On failure nothing staged since the last successful save is kept,
        so the caller can retry the whole intent.

        Raises:
            StoreError: If the flush fails
        """
        pass

"""Abstract interfaces for the engine's external collaborators."""

from mizan.interfaces.anchor_source import IAnchorSource
from mizan.interfaces.commitment_store import ICommitmentStore

__all__ = [
    "IAnchorSource",
    "ICommitmentStore",
]

"""Local (in-process) implementations of the engine's collaborators."""

from mizan.infrastructure.local.memory_commitment_store import InMemoryCommitmentStore
from mizan.infrastructure.local.static_anchor_source import StaticAnchorSource

__all__ = [
    "InMemoryCommitmentStore",
    "StaticAnchorSource",
]

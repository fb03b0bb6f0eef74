"""Local collection state and optimistic synchronisation with the remote store.

- ApplicationStore: the single-owner local collection
- CollectionReader: cancellable reads into the store
- OptimisticUpdateCoordinator: patch locally, write remotely, roll back
  on failure
"""

from src.applications.sync.coordinator import (
    CommitResult,
    CommitStatus,
    Mutation,
    NotesMutation,
    OptimisticUpdateCoordinator,
    RemovalMutation,
    StageMutation,
)
from src.applications.sync.reader import CollectionReader
from src.applications.sync.store import ApplicationStore, StoreSnapshot

__all__ = [
    "ApplicationStore",
    "CollectionReader",
    "CommitResult",
    "CommitStatus",
    "Mutation",
    "NotesMutation",
    "OptimisticUpdateCoordinator",
    "RemovalMutation",
    "StageMutation",
    "StoreSnapshot",
]

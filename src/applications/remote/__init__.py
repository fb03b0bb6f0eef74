"""Remote store contract and implementations.

The remote store is the system of record for applications and their
event history. The engine consumes it only through ApplicationRemote.
"""

from src.applications.remote.errors import (
    ApplicationNotFoundError,
    NotAuthenticatedError,
    RemoteStoreError,
)
from src.applications.remote.protocol import (
    ApplicationRemote,
    IdentityResolver,
    StaticIdentity,
)

__all__ = [
    "ApplicationNotFoundError",
    "ApplicationRemote",
    "IdentityResolver",
    "NotAuthenticatedError",
    "RemoteStoreError",
    "StaticIdentity",
]

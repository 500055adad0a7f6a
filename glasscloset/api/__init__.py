"""HTTP access to the closet backend."""

from .auth import AuthSession, TokenStore, User
from .client import AnalysisClient
from .connectivity import ConnectivityMonitor, NetworkMonitor

__all__ = [
    "AnalysisClient",
    "AuthSession",
    "ConnectivityMonitor",
    "NetworkMonitor",
    "TokenStore",
    "User",
]

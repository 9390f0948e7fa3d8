# Sync/__init__.py
from .engine import SyncEngine
from .models import PullResult, PushBatch, PushResult, KindStats, parse_checkpoint
from .exceptions import SyncError, ApplyError
from .conflict import ConflictResolver, LastWriteWinsStrategy

__all__ = [
    "SyncEngine",
    "PullResult",
    "PushBatch",
    "PushResult",
    "KindStats",
    "parse_checkpoint",
    "SyncError",
    "ApplyError",
    "ConflictResolver",
    "LastWriteWinsStrategy",
]

"""Sync status model for the synchronization engine."""

from datetime import datetime
from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field


class SyncStatus(str, Enum):
    """Enum for sync engine states."""

    IDLE = "idle"
    SYNCING = "syncing"
    SYNCED = "synced"
    ERROR = "error"


class SyncState(BaseModel):
    """Point-in-time view of the engine's observable state."""

    status: SyncStatus = Field(
        default=SyncStatus.IDLE,
        description="Current state machine position"
    )

    last_error: Optional[str] = Field(
        default=None,
        description="Message of the last remote failure, cleared on the next attempt"
    )

    is_online: bool = Field(
        default=True,
        description="Mirrors platform connectivity"
    )

    is_remote_connected: bool = Field(
        default=False,
        description="Result of the last reachability probe or remote load"
    )

    last_synced_at: Optional[datetime] = Field(
        default=None,
        description="When the baseline was last reconciled"
    )

    upserted: int = Field(
        default=0,
        ge=0,
        description="Records upserted by the last successful remote sync"
    )

    deleted: int = Field(
        default=0,
        ge=0,
        description="Records deleted by the last successful remote sync"
    )

    model_config = {"frozen": True}

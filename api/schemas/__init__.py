"""
Pydantic schemas for the Housing API.

Re-exports all schemas for convenient importing.
"""

from __future__ import annotations

from .assignments import (
    AssignGroupRequest,
    AssignParticipantRequest,
    GroupAllocationResponse,
    MoveParticipantRequest,
    RemovalResponse,
)
from .auto_assign import AutoAssignRunResponse, RunProgress
from .inventory import InventoryImportRequest

__all__ = [
    "AssignGroupRequest",
    "AssignParticipantRequest",
    "AutoAssignRunResponse",
    "GroupAllocationResponse",
    "InventoryImportRequest",
    "MoveParticipantRequest",
    "RemovalResponse",
    "RunProgress",
]

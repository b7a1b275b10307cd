"""
Pydantic schemas for manual assignment endpoints.
"""

from __future__ import annotations

from pydantic import BaseModel, Field

from housing.models import Cohort, Gender, GroupRoomAllocation


class AssignParticipantRequest(BaseModel):
    participant_id: str
    room_id: str
    bed_number: int | None = Field(default=None, ge=1)
    assigned_by: str | None = None


class AssignGroupRequest(BaseModel):
    group_id: str
    gender: Gender
    cohort: Cohort = Cohort.YOUTH
    room_id: str
    beds: int = Field(ge=1)
    assigned_by: str | None = None


class MoveParticipantRequest(BaseModel):
    room_id: str
    bed_number: int | None = Field(default=None, ge=1)
    assigned_by: str | None = None


class GroupAllocationResponse(BaseModel):
    """Beds one group bucket holds in one room."""

    group_id: str
    gender: Gender
    cohort: Cohort
    room_id: str
    room_label: str
    beds: int
    bed_numbers: list[int]
    assignment_ids: list[str]

    @classmethod
    def from_allocation(cls, allocation: GroupRoomAllocation) -> GroupAllocationResponse:
        return cls(beds=allocation.beds, **allocation.model_dump())


class RemovalResponse(BaseModel):
    """Outcome of an idempotent removal."""

    removed: int

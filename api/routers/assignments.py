"""
Assignments Router - manual, one-at-a-time bed assignment.

Ledger errors are not caught here; the application's HousingError handler
turns them into HTTP responses carrying the error code.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, status

from housing.models import Assignment, Cohort, Gender

from ..dependencies import HousingServices, get_services
from ..schemas import (
    AssignGroupRequest,
    AssignParticipantRequest,
    GroupAllocationResponse,
    MoveParticipantRequest,
    RemovalResponse,
)

router = APIRouter(prefix="/api", tags=["assignments"])


@router.post("/assignments", status_code=status.HTTP_201_CREATED)
def assign_participant(
    request: AssignParticipantRequest, services: HousingServices = Depends(get_services)
) -> Assignment:
    return services.manual.assign_participant(
        request.participant_id,
        request.room_id,
        bed_number=request.bed_number,
        assigned_by=request.assigned_by,
    )


@router.post("/assignments/group", status_code=status.HTTP_201_CREATED)
def assign_group(
    request: AssignGroupRequest, services: HousingServices = Depends(get_services)
) -> GroupAllocationResponse:
    allocation = services.manual.assign_group(
        request.group_id,
        request.gender,
        request.cohort,
        request.room_id,
        request.beds,
        assigned_by=request.assigned_by,
    )
    return GroupAllocationResponse.from_allocation(allocation)


@router.delete("/assignments/{assignment_id}")
def unassign(assignment_id: str, services: HousingServices = Depends(get_services)) -> RemovalResponse:
    """Release one bed; releasing an already released bed is not an error."""
    return RemovalResponse(removed=int(services.manual.unassign(assignment_id)))


@router.get("/rooms/{room_id}/assignments")
def room_assignments(room_id: str, services: HousingServices = Depends(get_services)) -> list[Assignment]:
    return services.manual.room_assignments(room_id)


@router.get("/participants/{participant_id}/assignment")
def participant_assignment(
    participant_id: str, services: HousingServices = Depends(get_services)
) -> Assignment | None:
    return services.manual.participant_assignment(participant_id)


@router.delete("/participants/{participant_id}/assignment")
def unassign_participant(participant_id: str, services: HousingServices = Depends(get_services)) -> RemovalResponse:
    return RemovalResponse(removed=int(services.manual.unassign_participant(participant_id)))


@router.post("/participants/{participant_id}/move")
def move_participant(
    participant_id: str, request: MoveParticipantRequest, services: HousingServices = Depends(get_services)
) -> Assignment:
    return services.manual.move_participant(
        participant_id,
        request.room_id,
        bed_number=request.bed_number,
        assigned_by=request.assigned_by,
    )


@router.get("/groups/{group_id}/allocations")
def group_allocations(group_id: str, services: HousingServices = Depends(get_services)) -> list[GroupAllocationResponse]:
    return [GroupAllocationResponse.from_allocation(a) for a in services.manual.group_allocations(group_id)]


@router.delete("/groups/{group_id}/allocations")
def unassign_group(
    group_id: str,
    gender: Gender,
    cohort: Cohort,
    room_id: str | None = None,
    services: HousingServices = Depends(get_services),
) -> RemovalResponse:
    """Release a group bucket's beds in one room, or in every room when room_id is omitted."""
    return RemovalResponse(removed=services.manual.unassign_group(group_id, gender, cohort, room_id=room_id))

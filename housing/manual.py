"""
Manual Assignment API.

Operator-facing, one assignment at a time. Participants are resolved
through the roster, every write goes through the ledger and ledger errors
reach the caller unchanged. Removal operations are idempotent: removing
something that is already gone succeeds and reports that nothing changed.
"""

from __future__ import annotations

import logging

from .errors import NotFound
from .models import Assignment, Cohort, Gender, GroupRoomAllocation
from .roster import RosterProvider
from .store import AssignmentLedger

logger = logging.getLogger(__name__)


class ManualAssignmentService:
    def __init__(self, ledger: AssignmentLedger, roster: RosterProvider):
        self.ledger = ledger
        self.roster = roster

    def assign_participant(
        self,
        participant_id: str,
        room_id: str,
        bed_number: int | None = None,
        assigned_by: str | None = None,
    ) -> Assignment:
        individual = self.roster.get_individual(participant_id)
        return self.ledger.assign(room_id, individual, bed_number=bed_number, assigned_by=assigned_by)

    def assign_group(
        self,
        group_id: str,
        gender: Gender,
        cohort: Cohort,
        room_id: str,
        beds: int,
        assigned_by: str | None = None,
    ) -> GroupRoomAllocation:
        bucket = self.roster.get_group_bucket(group_id, gender, cohort)
        return self.ledger.assign_group(room_id, bucket, beds, assigned_by=assigned_by)

    def move_participant(
        self,
        participant_id: str,
        room_id: str,
        bed_number: int | None = None,
        assigned_by: str | None = None,
    ) -> Assignment:
        individual = self.roster.get_individual(participant_id)
        return self.ledger.move(individual, room_id, bed_number=bed_number, assigned_by=assigned_by)

    def unassign(self, assignment_id: str) -> bool:
        """Release one bed. Returns False when the assignment was already gone."""
        try:
            self.ledger.unassign(assignment_id)
        except NotFound:
            logger.debug(f"Assignment {assignment_id} already removed")
            return False
        return True

    def unassign_participant(self, participant_id: str) -> bool:
        try:
            self.ledger.unassign_participant(participant_id)
        except NotFound:
            logger.debug(f"Participant {participant_id} holds no bed")
            return False
        return True

    def unassign_group(
        self,
        group_id: str,
        gender: Gender,
        cohort: Cohort,
        room_id: str | None = None,
    ) -> int:
        """Release a group bucket's beds; returns how many were released (0 if none)."""
        try:
            return self.ledger.unassign_group(group_id, gender, cohort, room_id=room_id)
        except NotFound:
            logger.debug(f"Group {group_id} ({gender.value} {cohort.value}) holds no beds")
            return 0

    def room_assignments(self, room_id: str) -> list[Assignment]:
        return self.ledger.list_room_assignments(room_id)

    def participant_assignment(self, participant_id: str) -> Assignment | None:
        return self.ledger.get_participant_assignment(participant_id)

    def group_allocations(self, group_id: str) -> list[GroupRoomAllocation]:
        return self.ledger.list_group_allocations(group_id)

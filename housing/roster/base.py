"""Roster provider protocol.

The registration side of the system owns the participant records. The
engine only reads them through this interface, so the planner and the
manual API do not care whether they come from PocketBase or memory.
"""

from __future__ import annotations

from typing import Protocol

from ..models import Cohort, Gender, GroupBucket, Individual


class RosterProvider(Protocol):
    """Read-only source of people needing beds."""

    def list_individuals(self) -> list[Individual]:
        """Every individual needing a bed, in registration order."""
        ...

    def list_group_buckets(self) -> list[GroupBucket]:
        """Every group bucket, sized by the total beds it needs."""
        ...

    def get_individual(self, participant_id: str) -> Individual:
        """Raises NotFound for an unknown id."""
        ...

    def get_group_bucket(self, group_id: str, gender: Gender, cohort: Cohort) -> GroupBucket:
        """Raises NotFound for an unknown bucket key."""
        ...

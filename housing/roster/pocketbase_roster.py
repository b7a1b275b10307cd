"""Roster provider backed by PocketBase collections.

Individuals come from the participants collection, one record per person.
Group buckets come from a collection holding one record per
(group, gender, cohort) with the number of beds the bucket needs.
"""

from __future__ import annotations

import logging
from typing import Any

from pocketbase import PocketBase
from pocketbase.client import ClientResponseError  # type: ignore[attr-defined]

from ..errors import NotFound
from ..models import Cohort, Gender, GroupBucket, Individual

logger = logging.getLogger(__name__)


def _escape_filter_value(value: str) -> str:
    """Escape a string value for a PocketBase filter (O'Brien -> O''Brien)."""
    return value.replace("'", "''")


def _text(record: Any, field: str) -> str | None:
    value = getattr(record, field, None)
    if value is None:
        return None
    value = str(value).strip()
    return value or None


class PocketBaseRosterProvider:
    """Read participants and group buckets from PocketBase."""

    def __init__(
        self,
        client: PocketBase,
        participants_collection: str = "housing_participants",
        buckets_collection: str = "housing_group_buckets",
        participants_filter: str | None = None,
    ):
        """
        Args:
            client: Authenticated PocketBase client
            participants_collection: Collection of individual participants
            buckets_collection: Collection of group buckets
            participants_filter: Extra PocketBase filter applied when listing participants
        """
        self.client = client
        self.participants_collection = participants_collection
        self.buckets_collection = buckets_collection
        self.participants_filter = participants_filter

    def list_individuals(self) -> list[Individual]:
        query_params: dict[str, Any] = {"sort": "group_id,last_name,first_name"}
        if self.participants_filter:
            query_params["filter"] = self.participants_filter

        records = self.client.collection(self.participants_collection).get_full_list(query_params=query_params)
        individuals = []
        for record in records:
            individual = self._map_individual(record)
            if individual is not None:
                individuals.append(individual)
        logger.info(f"Loaded {len(individuals)} participants from {self.participants_collection}")
        return individuals

    def list_group_buckets(self) -> list[GroupBucket]:
        records = self.client.collection(self.buckets_collection).get_full_list(
            query_params={"sort": "group_name,gender,cohort"}
        )
        buckets = [bucket for bucket in (self._map_bucket(r) for r in records) if bucket is not None]
        logger.info(f"Loaded {len(buckets)} group buckets from {self.buckets_collection}")
        return buckets

    def get_individual(self, participant_id: str) -> Individual:
        try:
            record = self.client.collection(self.participants_collection).get_one(participant_id)
        except ClientResponseError as e:
            if getattr(e, "status", None) == 404:
                raise NotFound("Participant", participant_id) from e
            raise
        individual = self._map_individual(record)
        if individual is None:
            raise NotFound("Participant", participant_id)
        return individual

    def get_group_bucket(self, group_id: str, gender: Gender, cohort: Cohort) -> GroupBucket:
        filter_str = (
            f"group_id = '{_escape_filter_value(group_id)}' "
            f"&& gender = '{gender.value}' && cohort = '{cohort.value}'"
        )
        result = self.client.collection(self.buckets_collection).get_list(
            1, 1, query_params={"filter": filter_str}
        )
        bucket = self._map_bucket(result.items[0]) if result.items else None
        if bucket is None:
            raise NotFound("Group bucket", f"{group_id}/{gender.value}/{cohort.value}")
        return bucket

    def _map_individual(self, record: Any) -> Individual | None:
        """Map a participant record; malformed records are logged and skipped."""
        try:
            return Individual(
                id=record.id,
                first_name=_text(record, "first_name") or "",
                last_name=_text(record, "last_name") or "",
                gender=Gender(str(record.gender).lower()),
                is_minor=bool(getattr(record, "is_minor", False)),
                is_clergy=bool(getattr(record, "is_clergy", False)),
                group_id=_text(record, "group_id"),
                parish=_text(record, "parish"),
                roommate_preference=_text(record, "roommate_preference"),
            )
        except (AttributeError, ValueError) as e:
            logger.warning(f"Skipping participant record {getattr(record, 'id', '?')}: {e}")
            return None

    def _map_bucket(self, record: Any) -> GroupBucket | None:
        try:
            return GroupBucket(
                group_id=record.group_id,
                group_name=_text(record, "group_name") or record.group_id,
                parish=_text(record, "parish"),
                gender=Gender(str(record.gender).lower()),
                cohort=Cohort(str(record.cohort).lower()),
                size=int(record.size),
            )
        except (AttributeError, TypeError, ValueError) as e:
            logger.warning(f"Skipping group bucket record {getattr(record, 'id', '?')}: {e}")
            return None

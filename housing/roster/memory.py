"""In-memory roster, used by tests and the `memory` roster source."""

from __future__ import annotations

import threading
from collections.abc import Iterable

from ..errors import NotFound
from ..models import Cohort, Gender, GroupBucket, Individual


class InMemoryRosterProvider:
    def __init__(
        self,
        individuals: Iterable[Individual] = (),
        buckets: Iterable[GroupBucket] = (),
    ):
        self._lock = threading.Lock()
        self._individuals: dict[str, Individual] = {p.id: p for p in individuals}
        self._buckets: dict[tuple[str, Gender, Cohort], GroupBucket] = {b.key: b for b in buckets}

    def add_individual(self, individual: Individual) -> None:
        with self._lock:
            self._individuals[individual.id] = individual

    def add_group_bucket(self, bucket: GroupBucket) -> None:
        with self._lock:
            self._buckets[bucket.key] = bucket

    def list_individuals(self) -> list[Individual]:
        with self._lock:
            return list(self._individuals.values())

    def list_group_buckets(self) -> list[GroupBucket]:
        with self._lock:
            return list(self._buckets.values())

    def get_individual(self, participant_id: str) -> Individual:
        with self._lock:
            individual = self._individuals.get(participant_id)
        if individual is None:
            raise NotFound("Participant", participant_id)
        return individual

    def get_group_bucket(self, group_id: str, gender: Gender, cohort: Cohort) -> GroupBucket:
        with self._lock:
            bucket = self._buckets.get((group_id, gender, cohort))
        if bucket is None:
            raise NotFound("Group bucket", f"{group_id}/{gender.value}/{cohort.value}")
        return bucket

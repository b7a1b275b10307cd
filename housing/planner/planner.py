"""
Auto-Assign Planner.

A run reads the roster and the live inventory, plans placements with the
requested strategy, then commits each placement through the ledger. The
plan is only a proposal: the ledger re-checks every rule at commit time,
and anything it refuses becomes a skip with a reason. Work already
committed is never undone, including when the run is cancelled.

Processing order:
    1. Filter participants; drop housed individuals when only_unassigned;
       reduce group buckets by the beds they already hold.
    2. Candidate rooms: available housing rooms of the selected buildings,
       in canonical order.
    3. Partition by (gender, cohort): male before female; youth, clergy,
       adult within each. Planned free beds are shared across partitions.
    4. Plan each partition with the strategy over the rooms it may use.
    5. Commit; different rooms commit in parallel, one room's placements
       commit in plan order.
"""

from __future__ import annotations

import logging
import threading
from collections import defaultdict
from concurrent.futures import ThreadPoolExecutor

from ..eligibility import is_eligible
from ..errors import ASSIGNMENT_ERRORS, HousingError, RoomFull
from ..models import (
    AutoAssignRequest,
    AutoAssignResult,
    Cohort,
    Gender,
    GenderFilter,
    GroupBucket,
    HousingType,
    Individual,
    PlacementRecord,
    Room,
    TypeFilter,
)
from ..roster import RosterProvider
from ..store import AssignmentLedger, InventoryStore
from .callbacks import PlannerProgressCallback
from .roommates import roommate_clusters
from .strategies import STRATEGIES, Placement, PlanOutcome, PlanState, Unit

logger = logging.getLogger(__name__)

PARTITION_ORDER: list[tuple[Gender, Cohort]] = [
    (gender, cohort)
    for gender in (Gender.MALE, Gender.FEMALE)
    for cohort in (Cohort.YOUTH, Cohort.CLERGY, Cohort.ADULT)
]

TYPE_FILTER_COHORTS: dict[TypeFilter, frozenset[Cohort]] = {
    TypeFilter.ALL: frozenset(Cohort),
    TypeFilter.YOUTH: frozenset({Cohort.YOUTH}),
    TypeFilter.CHAPERONE: frozenset({Cohort.ADULT, Cohort.CLERGY}),
    TypeFilter.CLERGY: frozenset({Cohort.CLERGY}),
}


def _matches_filters(gender: Gender, cohort: Cohort, request: AutoAssignRequest) -> bool:
    if request.gender_filter != GenderFilter.ALL and gender.value != request.gender_filter.value:
        return False
    return cohort in TYPE_FILTER_COHORTS[request.type_filter]


def _partition_rooms(rooms: list[Room], gender: Gender, cohort: Cohort) -> list[Room]:
    eligible = [room for room in rooms if is_eligible(room, gender, cohort)]
    if cohort == Cohort.CLERGY:
        # Stable sort keeps canonical order within each tier
        eligible.sort(key=lambda room: room.effective_housing_type != HousingType.CLERGY)
    return eligible


class AutoAssignPlanner:
    """Batch planner committing through the assignment ledger."""

    def __init__(
        self,
        inventory: InventoryStore,
        ledger: AssignmentLedger,
        roster: RosterProvider,
        max_workers: int = 4,
    ):
        self.inventory = inventory
        self.ledger = ledger
        self.roster = roster
        self.max_workers = max(1, max_workers)

    def run(
        self,
        request: AutoAssignRequest,
        cancel_event: threading.Event | None = None,
        callback: PlannerProgressCallback | None = None,
    ) -> AutoAssignResult:
        cancel_event = cancel_event or threading.Event()
        callback = callback or PlannerProgressCallback()
        run_log = callback.run_log

        logger.info(
            f"Auto-assign started: strategy={request.strategy.value} gender={request.gender_filter.value} "
            f"type={request.type_filter.value} buildings={request.building_ids or 'all'} "
            f"only_unassigned={request.only_unassigned}"
        )

        rooms = self._candidate_rooms(request)
        state = PlanState(rooms)
        individuals, rehoused = self._select_individuals(request, state)
        buckets = self._select_buckets(request)

        outcome = PlanOutcome()
        strategy = STRATEGIES[request.strategy]
        for gender, cohort in PARTITION_ORDER:
            partition_rooms = _partition_rooms(rooms, gender, cohort)
            units = self._build_units(
                [b for b in buckets if b.gender == gender and b.cohort == cohort],
                [i for i in individuals if i.gender == gender and i.cohort == cohort],
                request.honor_roommate_preference,
            )
            if not units:
                continue
            partition_outcome = strategy(units, partition_rooms, state)
            logger.debug(
                f"Partition {gender.value}/{cohort.value}: {len(units)} units, {len(partition_rooms)} rooms, "
                f"{len(partition_outcome.placements)} placements"
            )
            outcome.extend(partition_outcome)

        result = AutoAssignResult()
        for unit in outcome.unplaced:
            reason = "no eligible room with a free bed"
            if unit.bucket is not None:
                names = [f"{unit.bucket.name} ({unit.size} beds)"]
            else:
                names = [member.name for member in unit.members]
            for name in names:
                result.errors.append(f"Could not place {name}: {reason}")
                run_log.log_skip(name, reason)
            result.skipped += unit.size

        callback.on_plan_ready(len(outcome.placements), sum(unit.size for unit in outcome.unplaced))
        self._commit(outcome.placements, request, rehoused, cancel_event, callback, result)

        if cancel_event.is_set():
            result.cancelled = True
        logger.info(
            f"Auto-assign finished: {result.assigned} assigned, {result.skipped} skipped"
            + (" (cancelled)" if result.cancelled else "")
        )
        return result

    # =========================================================================
    # Selection
    # =========================================================================

    def _candidate_rooms(self, request: AutoAssignRequest) -> list[Room]:
        rooms = self.inventory.list_rooms()
        if request.building_ids:
            selected = set(request.building_ids)
            rooms = [room for room in rooms if room.building_id in selected]
        return [room for room in rooms if room.is_available and room.accepts_beds]

    def _select_individuals(
        self, request: AutoAssignRequest, state: PlanState
    ) -> tuple[list[Individual], set[str]]:
        """Individuals to plan, plus the ids of housed ones being re-planned."""
        individuals = [
            individual
            for individual in self.roster.list_individuals()
            if _matches_filters(individual.gender, individual.cohort, request)
        ]
        housed = self.ledger.assigned_participant_ids()

        if request.only_unassigned:
            return [individual for individual in individuals if individual.id not in housed], set()

        # Re-planned participants give their current bed back to the plan
        rehoused = {individual.id for individual in individuals if individual.id in housed}
        for participant_id in rehoused:
            current = self.ledger.get_participant_assignment(participant_id)
            if current is not None:
                state.release(current.room_id)
        return individuals, rehoused

    def _select_buckets(self, request: AutoAssignRequest) -> list[GroupBucket]:
        """Group buckets with beds still to place, sized by what is missing."""
        held = self.ledger.group_bed_counts()
        buckets = []
        for bucket in self.roster.list_group_buckets():
            if not _matches_filters(bucket.gender, bucket.cohort, request):
                continue
            missing = bucket.size - held.get(bucket.key, 0)
            if missing > 0:
                buckets.append(bucket.model_copy(update={"size": missing}))
        return buckets

    def _build_units(
        self,
        buckets: list[GroupBucket],
        individuals: list[Individual],
        honor_roommate_preference: bool,
    ) -> list[Unit]:
        units = [Unit(bucket=bucket, bucket_beds=bucket.size) for bucket in buckets]
        if honor_roommate_preference:
            units.extend(Unit(members=cluster) for cluster in roommate_clusters(individuals))
        else:
            units.extend(Unit(members=[individual]) for individual in individuals)
        return units

    # =========================================================================
    # Commit
    # =========================================================================

    def _commit(
        self,
        placements: list[Placement],
        request: AutoAssignRequest,
        rehoused: set[str],
        cancel_event: threading.Event,
        callback: PlannerProgressCallback,
        result: AutoAssignResult,
    ) -> None:
        by_room: dict[str, list[Placement]] = defaultdict(list)
        for placement in placements:
            by_room[placement.room.id].append(placement)

        lock = threading.Lock()
        committed: list[Placement] = []
        deferred: list[Placement] = []

        def commit_room(room_placements: list[Placement]) -> None:
            for placement in room_placements:
                if cancel_event.is_set():
                    return
                error = self._commit_one(placement, request, rehoused)
                if isinstance(error, RoomFull) and placement.individual is not None and rehoused:
                    # May succeed once another re-planned participant has moved out
                    with lock:
                        deferred.append(placement)
                    continue
                callback.on_commit(error is None)
                with lock:
                    if error is None:
                        committed.append(placement)
                    else:
                        self._record_rejection(placement, error, callback, result)

        with ThreadPoolExecutor(max_workers=self.max_workers) as executor:
            futures = [executor.submit(commit_room, room_placements) for room_placements in by_room.values()]
            for future in futures:
                future.result()

        for placement in sorted(deferred, key=lambda p: p.sequence):
            if cancel_event.is_set():
                break
            error = self._commit_one(placement, request, rehoused)
            callback.on_commit(error is None)
            if error is None:
                committed.append(placement)
            else:
                self._record_rejection(placement, error, callback, result)

        for placement in sorted(committed, key=lambda p: p.sequence):
            result.assigned += placement.beds
            result.placements.append(
                PlacementRecord(
                    participant=placement.participant_name,
                    room_id=placement.room.id,
                    room_label=placement.room.label,
                    beds=placement.beds,
                )
            )
            callback.run_log.log_placement(placement.participant_name, placement.room.label, placement.beds)

    def _commit_one(
        self, placement: Placement, request: AutoAssignRequest, rehoused: set[str]
    ) -> HousingError | None:
        """Write one placement; returns the ledger's refusal instead of raising it."""
        room_id = placement.room.id
        try:
            if placement.bucket is not None:
                self.ledger.assign_group(room_id, placement.bucket, placement.beds, assigned_by=request.assigned_by)
                return None

            individual = placement.individual
            assert individual is not None
            if individual.id in rehoused:
                self.ledger.move(individual, room_id, assigned_by=request.assigned_by)
            else:
                self.ledger.assign(room_id, individual, assigned_by=request.assigned_by)
        except ASSIGNMENT_ERRORS as e:
            return e
        return None

    def _record_rejection(
        self,
        placement: Placement,
        error: HousingError,
        callback: PlannerProgressCallback,
        result: AutoAssignResult,
    ) -> None:
        result.skipped += placement.beds
        result.errors.append(f"Failed to assign {placement.participant_name} to {placement.room.label}: {error.message}")
        callback.run_log.log_rejection(error.code, placement.participant_name, placement.room.label, error.message)

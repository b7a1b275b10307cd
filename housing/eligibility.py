"""
Room eligibility rules.

Hard constraints a room must satisfy before any bed in it can go to a
participant: availability, gender segregation and housing type. Both the
ledger (at commit time) and the planner (when choosing candidate rooms)
evaluate the same rules, so they live here as pure functions.
"""

from __future__ import annotations

from .errors import GenderMismatch, HousingTypeMismatch, RoomUnavailable
from .models import Cohort, Gender, GroupBucket, HousingType, Individual, Room, RoomGender

# Cohorts each housing type admits
HOUSING_TYPE_COHORTS: dict[HousingType, frozenset[Cohort]] = {
    HousingType.YOUTH_UNDER_18: frozenset({Cohort.YOUTH}),
    HousingType.CHAPERONE_ADULT: frozenset({Cohort.ADULT, Cohort.CLERGY}),
    HousingType.CLERGY: frozenset({Cohort.CLERGY}),
    HousingType.GENERAL: frozenset({Cohort.ADULT, Cohort.CLERGY}),
}


def profile(participant: Individual | GroupBucket) -> tuple[Gender, Cohort]:
    """(gender, cohort) of either participant variant."""
    return participant.gender, participant.cohort


def gender_allows(room: Room, gender: Gender) -> bool:
    room_gender = room.effective_gender
    return room_gender == RoomGender.MIXED or room_gender.value == gender.value


def housing_type_allows(room: Room, cohort: Cohort) -> bool:
    return cohort in HOUSING_TYPE_COHORTS[room.effective_housing_type]


def is_eligible(room: Room, gender: Gender, cohort: Cohort) -> bool:
    """Whether the room could house this profile, ignoring free beds."""
    return room.is_available and room.accepts_beds and gender_allows(room, gender) and housing_type_allows(room, cohort)


def check_eligibility(room: Room, participant: Individual | GroupBucket) -> None:
    """Raise the first rule the room violates for this participant.

    Raises:
        RoomUnavailable: room flagged unavailable or reserved for small groups
        GenderMismatch: single-gender room of the other gender
        HousingTypeMismatch: housing type does not admit the participant's cohort
    """
    if not room.is_available:
        raise RoomUnavailable(f"Room {room.label} is not available")
    if not room.accepts_beds:
        raise RoomUnavailable(f"Room {room.label} is a small-group room and has no beds")

    gender, cohort = profile(participant)

    if not gender_allows(room, gender):
        raise GenderMismatch(
            f"{participant.name} ({gender.value}) cannot be housed in {room.label}, "
            f"which is reserved for {room.effective_gender.value} participants"
        )

    if not housing_type_allows(room, cohort):
        housing_type = room.effective_housing_type.value
        if cohort == Cohort.YOUTH:
            reason = "minors may only be housed in youth_under_18 rooms"
        else:
            reason = f"{housing_type} rooms do not admit {cohort.value} participants"
        raise HousingTypeMismatch(f"{participant.name} cannot be housed in {room.label}: {reason}")

"""Tests for room eligibility rules."""

from __future__ import annotations

import pytest

from housing.eligibility import check_eligibility, housing_type_allows, is_eligible
from housing.errors import GenderMismatch, HousingTypeMismatch, RoomUnavailable
from housing.models import Cohort, Gender, HousingType, RoomGender, RoomPurpose
from tests.fixtures.factories import create_bucket, create_individual, create_room_model


class TestHousingTypeAdmission:
    @pytest.mark.parametrize(
        "housing_type,cohort,allowed",
        [
            (HousingType.YOUTH_UNDER_18, Cohort.YOUTH, True),
            (HousingType.YOUTH_UNDER_18, Cohort.ADULT, False),
            (HousingType.YOUTH_UNDER_18, Cohort.CLERGY, False),
            (HousingType.CHAPERONE_ADULT, Cohort.ADULT, True),
            (HousingType.CHAPERONE_ADULT, Cohort.CLERGY, True),
            (HousingType.CHAPERONE_ADULT, Cohort.YOUTH, False),
            (HousingType.CLERGY, Cohort.CLERGY, True),
            (HousingType.CLERGY, Cohort.ADULT, False),
            (HousingType.GENERAL, Cohort.ADULT, True),
            (HousingType.GENERAL, Cohort.YOUTH, False),
        ],
    )
    def test_admission_table(self, housing_type: HousingType, cohort: Cohort, allowed: bool) -> None:
        room = create_room_model("r1", housing_type=housing_type)
        assert housing_type_allows(room, cohort) is allowed


class TestCheckEligibility:
    def test_eligible_room_passes(self) -> None:
        check_eligibility(create_room_model("r1"), create_individual("p1"))

    def test_unavailable_room_rejected_first(self) -> None:
        room = create_room_model("r1", gender=RoomGender.FEMALE).model_copy(update={"is_available": False})
        with pytest.raises(RoomUnavailable):
            check_eligibility(room, create_individual("p1"))

    def test_small_group_room_never_receives_beds(self) -> None:
        room = create_room_model("r1").model_copy(update={"purpose": RoomPurpose.SMALL_GROUP})
        with pytest.raises(RoomUnavailable, match="small-group"):
            check_eligibility(room, create_individual("p1"))

    def test_gender_mismatch(self) -> None:
        room = create_room_model("r1", gender=RoomGender.FEMALE)
        with pytest.raises(GenderMismatch):
            check_eligibility(room, create_individual("p1", gender=Gender.MALE))

    def test_mixed_room_admits_any_gender(self) -> None:
        room = create_room_model("r1", gender=RoomGender.MIXED)
        check_eligibility(room, create_individual("p1", gender=Gender.FEMALE))
        check_eligibility(room, create_individual("p2", gender=Gender.MALE))

    def test_minor_outside_youth_room(self) -> None:
        room = create_room_model("r1", housing_type=HousingType.GENERAL)
        with pytest.raises(HousingTypeMismatch, match="minors may only be housed"):
            check_eligibility(room, create_individual("p1", is_minor=True))

    def test_adult_in_youth_room(self) -> None:
        room = create_room_model("r1", housing_type=HousingType.YOUTH_UNDER_18)
        with pytest.raises(HousingTypeMismatch):
            check_eligibility(room, create_individual("p1", is_minor=False))

    def test_room_override_beats_building(self) -> None:
        room = create_room_model("r1", housing_type=HousingType.YOUTH_UNDER_18).model_copy(
            update={"housing_type": HousingType.CLERGY}
        )
        check_eligibility(room, create_individual("p1", is_clergy=True))

    def test_group_bucket_checked_by_its_profile(self) -> None:
        room = create_room_model("r1", gender=RoomGender.MALE)
        with pytest.raises(GenderMismatch):
            check_eligibility(room, create_bucket("g1", 3, gender=Gender.FEMALE))


class TestIsEligible:
    def test_ignores_free_beds(self) -> None:
        room = create_room_model("r1", capacity=2, occupancy=2)
        assert is_eligible(room, Gender.MALE, Cohort.YOUTH)

    def test_unavailable_room_not_eligible(self) -> None:
        room = create_room_model("r1").model_copy(update={"is_available": False})
        assert not is_eligible(room, Gender.MALE, Cohort.YOUTH)

import pytest

from app.models.person import Category, Zone
from app.services.aggregator import aggregate, categorize, find_placement_tag
from tests.utils import attendance, placement_note, record


def test_aggregate_is_idempotent() -> None:
    records = attendance("Kim", [1, 2, 3, 4]) + [
        record("Lee", 1, spouse_name="Park", residence="서현동 (시에라)"),
        record("Park", 2),
        record("Kim", 0, notes=placement_note("Group A")),
    ]

    assert aggregate(records) == aggregate(records)


def test_count_matches_rounds_and_rounds_stay_in_range() -> None:
    records = [record("Choi", r) for r in (0, 1, 3, 9, 12, -1, 3)]

    choi = aggregate(records)["choi"]

    assert choi.attended_rounds == {1, 3}
    assert choi.attendance_count == len(choi.attended_rounds) == 2


def test_duplicate_rounds_do_not_inflate_count() -> None:
    people = aggregate([record("Kim", 1), record("Kim", 1), record("Kim", 1)])

    assert people["kim"].attended_rounds == {1}
    assert people["kim"].attendance_count == 1


def test_category_priority() -> None:
    untagged = aggregate(attendance("Kim", [1, 2, 3, 4, 5]))["kim"]
    assert untagged.category == Category.TARGET

    tagged = aggregate(attendance("Kim", [1, 2, 3, 4, 5]) + [record("Kim", 0, notes=placement_note("A"))])["kim"]
    assert tagged.category == Category.PLACED

    ongoing = aggregate(attendance("Kim", [1, 2, 3]))["kim"]
    assert ongoing.category == Category.ONGOING


def test_target_dominates_completed() -> None:
    # Eight or more rounds never yields COMPLETED as a category
    assert categorize(9, None) == Category.TARGET
    assert categorize(8, "Group A") == Category.PLACED

    graduate = aggregate(attendance("Kim", range(1, 9)))["kim"]
    assert graduate.category == Category.TARGET
    assert graduate.completed is True


def test_completed_flag_is_orthogonal_to_category() -> None:
    people = aggregate(
        attendance("Kim", range(1, 9))
        + [record("Kim", 0, notes=placement_note("A"))]
        + attendance("Lee", range(1, 8))
    )

    assert people["kim"].category == Category.PLACED
    assert people["kim"].completed is True
    assert people["lee"].completed is False
    assert all(p.category != Category.COMPLETED for p in people.values())


def test_placement_tag_is_monotonic() -> None:
    base = attendance("Kim", [1, 2, 3, 4]) + [record("Kim", 0, notes=placement_note("Group A"))]
    assert aggregate(base)["kim"].placement_tag == "Group A"

    superset = base + [
        record("Kim", 5, notes="다음 주 결석 예정"),
        record("Kim", 0, notes="정보 수정"),
    ]
    assert aggregate(superset)["kim"].placement_tag == "Group A"
    assert aggregate(superset)["kim"].category == Category.PLACED


def test_latest_placement_tag_wins() -> None:
    records = attendance("Kim", [1, 2, 3, 4]) + [
        record("Kim", 0, notes=placement_note("Group A")),
        record("Kim", 0, notes=placement_note("Group B", "이동")),
    ]

    assert aggregate(records)["kim"].placement_tag == "Group B"


def test_out_of_range_rows_still_contribute_tags() -> None:
    records = attendance("Kim", [1, 2, 3, 4]) + [record("Kim", 11, notes=placement_note("Group C"))]

    kim = aggregate(records)["kim"]

    assert kim.attendance_count == 4
    assert kim.placement_tag == "Group C"


def test_couple_region_is_backfilled() -> None:
    people = aggregate([
        record("A", 1, spouse_name="B"),
        record("B", 1, residence="정자동 (알파)"),
    ])

    assert people["a"].region == people["b"].region == "정자동 (알파)"
    assert people["b"].spouse_name == "A"
    assert people["a"].spouse_name == "B"


def test_couple_keeps_own_region_and_notes() -> None:
    people = aggregate([
        record("A", 1, spouse_name="b", residence="서현동 (시에라)", notes="자녀 둘"),
        record("B", 1, residence="정자동 (알파)", notes="직장 분당"),
    ])

    assert people["a"].region == "서현동 (시에라)"
    assert people["b"].region == "정자동 (알파)"
    assert people["a"].notes == "자녀 둘"
    assert people["b"].notes == "직장 분당"


@pytest.mark.parametrize("name", ["A", "Z"])
def test_couple_fill_does_not_depend_on_name_order(name) -> None:
    # B's region only comes from C's pass; it must not reach B's other spouse
    people = aggregate([
        record(name, 1, spouse_name="B"),
        record("B", 1),
        record("C", 1, spouse_name="B", residence="정자동 (알파)"),
    ])

    assert people[name.lower()].region == ""
    assert people["b"].region == "정자동 (알파)"
    assert people["c"].region == "정자동 (알파)"


def test_spouse_without_aggregate_is_left_alone() -> None:
    people = aggregate([record("A", 1, spouse_name="Nobody")])

    assert people["a"].spouse_name == "Nobody"
    assert people["a"].region == ""
    assert "nobody" not in people


def test_names_match_ignoring_case_and_whitespace() -> None:
    people = aggregate([
        record("  Kim  Minsu ", 1),
        record("kim minsu", 2),
        record("KIM MINSU", 2),
    ])

    assert list(people) == ["kim minsu"]
    assert people["kim minsu"].name == "Kim Minsu"
    assert people["kim minsu"].attended_rounds == {1, 2}


def test_blank_names_are_dropped() -> None:
    people = aggregate([record("", 1), record("   ", 2), record("Kim", 1)])

    assert list(people) == ["kim"]


def test_latest_non_blank_values_are_used() -> None:
    people = aggregate([
        record("Kim", 1, residence="금곡동 (알파)", preference="부부순", author="총무1"),
        record("Kim", 2, residence="", preference="자매순", author="총무2"),
    ])

    kim = people["kim"]
    assert kim.region == "금곡동 (알파)"
    assert kim.preference == "자매순"
    assert kim.last_author == "총무2"
    assert kim.zone == Zone.ALPHA
    assert kim.details == "선호: 자매순, 가족/기타: 없음"


def test_next_round_suggestion() -> None:
    people = aggregate(attendance("Kim", [1, 2, 4]) + attendance("Lee", range(1, 9)))

    assert people["kim"].next_round() == 3
    assert people["lee"].next_round() is None


def test_find_placement_tag() -> None:
    assert find_placement_tag("[배치완료: 사랑순] 자녀 1명") == "사랑순"
    assert find_placement_tag("[배치완료:믿음순]") == "믿음순"
    assert find_placement_tag("배치완료 예정") is None
    assert find_placement_tag("") is None


def test_end_to_end_placement_scenario() -> None:
    records = attendance("Kim", [1, 2, 3, 4])
    before = aggregate(records)["kim"]
    assert before.attendance_count == 4
    assert before.category == Category.TARGET

    records.append(record("Kim", 0, notes=placement_note("Group A", "...")))
    after = aggregate(records)["kim"]
    assert after.category == Category.PLACED
    assert after.placement_tag == "Group A"

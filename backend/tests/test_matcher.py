from helpers import slot

from tutorsync.services.matcher import find_perfect_match, group_by_date

MONDAY = "2025-06-30"
TUESDAY = "2025-07-01"


def test_empty_teacher_availability_has_no_match():
    assert find_perfect_match([], [("s1", slot(MONDAY, "09:00", "10:00"))]) is None


def test_empty_pool_returns_first_teacher_slot():
    teacher = [slot(MONDAY, "09:00", "10:00"), slot(TUESDAY, "09:00", "10:00")]
    match = find_perfect_match(teacher, [])
    assert match.timing == teacher[0]
    assert match.teacher_index == 0


def test_match_carries_teacher_date_weekday_and_timezone():
    teacher = [slot(MONDAY, "14:00", "16:00", timezone="Europe/Berlin")]
    match = find_perfect_match(teacher, [("s1", slot(MONDAY, "15:00", "17:00"))])
    assert (match.timing.start_label, match.timing.end_label) == ("15:00", "16:00")
    assert match.timing.timezone == "Europe/Berlin"
    assert match.timing.weekday.value == "Monday"


def test_teacher_slots_without_student_windows_on_their_date_are_skipped():
    teacher = [slot(MONDAY, "09:00", "10:00"), slot(TUESDAY, "13:00", "15:00")]
    pool = [("s1", slot(TUESDAY, "12:00", "14:00")), ("s2", slot(TUESDAY, "13:00", "16:00"))]
    match = find_perfect_match(teacher, pool)
    assert match.teacher_index == 1
    assert (match.timing.start_time, match.timing.end_time) == (780, 840)


def test_earliest_listed_teacher_slot_wins():
    teacher = [slot(TUESDAY, "09:00", "11:00"), slot(MONDAY, "09:00", "11:00")]
    pool = [("s1", slot(MONDAY, "09:00", "11:00")), ("s1", slot(TUESDAY, "09:00", "11:00"))]
    match = find_perfect_match(teacher, pool)
    # The Tuesday slot is listed first, so it wins even though Monday is earlier.
    assert match.teacher_index == 0
    assert match.timing.date.isoformat() == TUESDAY


def test_falls_through_to_later_slot_when_earlier_group_fails():
    teacher = [slot(MONDAY, "09:00", "10:00"), slot(MONDAY, "15:00", "17:00")]
    pool = [("s1", slot(MONDAY, "15:30", "16:30")), ("s2", slot(MONDAY, "15:00", "16:15"))]
    match = find_perfect_match(teacher, pool)
    assert match.teacher_index == 1
    assert (match.timing.start_label, match.timing.end_label) == ("15:30", "16:15")


def test_no_match_when_any_window_is_disjoint():
    teacher = [slot(MONDAY, "09:00", "11:00")]
    pool = [
        ("a", slot(MONDAY, "09:00", "10:00")),
        ("b", slot(MONDAY, "09:30", "10:30")),
        ("c", slot(MONDAY, "10:30", "11:00")),
    ]
    assert find_perfect_match(teacher, pool) is None


def test_group_by_date_keeps_insertion_order():
    pool = [("a", slot(MONDAY, "09:00", "10:00")), ("b", slot(TUESDAY, "09:00", "10:00")), ("c", slot(MONDAY, "11:00", "12:00"))]
    grouped = group_by_date(pool)
    assert [student for student, _ in grouped[slot(MONDAY, "09:00", "10:00").date]] == ["a", "c"]

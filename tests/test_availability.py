import pytest

from solver.availability import (
    CLASS_BUSY,
    TEACHER_BUSY,
    TEACHER_CONSECUTIVE_LIMIT,
    TEACHER_UNAVAILABLE_DAY,
    TEACHER_UNAVAILABLE_PERIOD,
    TEACHER_WEEKLY_CAP_REACHED,
    AvailabilityTracker,
    TeacherConstraints,
    TrackerError,
)
from solver.demands import LessonRef, ScheduledEntry
from solver.slots import Day, SlotCatalog, SlotId


MON_1 = SlotId(Day.MON, 1)
MON_2 = SlotId(Day.MON, 2)


def _catalog():
    return SlotCatalog.uniform(["MON", "TUE"], range(1, 4))


def test_reserve_blocks_teacher_and_class():
    tracker = AvailabilityTracker(_catalog())
    tracker.reserve("t1", "c1", MON_1)

    assert tracker.blocking_reason("t1", "c2", MON_1) == TEACHER_BUSY
    assert tracker.blocking_reason("t2", "c1", MON_1) == CLASS_BUSY
    assert tracker.is_free("t2", "c2", MON_1)
    assert tracker.teacher_load("t1") == 1


def test_release_restores_availability():
    tracker = AvailabilityTracker(_catalog())
    tracker.reserve("t1", "c1", MON_1)
    tracker.release("t1", "c1", MON_1)

    assert tracker.is_free("t1", "c1", MON_1)
    assert tracker.teacher_load("t1") == 0


def test_double_reserve_and_unknown_release_raise():
    tracker = AvailabilityTracker(_catalog())
    tracker.reserve("t1", "c1", MON_1)
    with pytest.raises(TrackerError):
        tracker.reserve("t1", "c2", MON_1)
    with pytest.raises(TrackerError):
        tracker.release("t1", "c1", MON_2)


def test_unavailable_days_and_periods():
    constraints = {
        "t1": TeacherConstraints.build(unavailable_days=["MONDAY"], unavailable_periods=["3"]),
    }
    tracker = AvailabilityTracker(_catalog(), constraints)

    assert tracker.blocking_reason("t1", "c1", MON_1) == TEACHER_UNAVAILABLE_DAY
    assert tracker.blocking_reason("t1", "c1", SlotId(Day.TUE, 3)) == TEACHER_UNAVAILABLE_PERIOD
    assert tracker.is_free("t1", "c1", SlotId(Day.TUE, 1))
    assert tracker.flexibility("t1") == 2


def test_weekly_cap_blocks_further_reservations():
    constraints = {"t1": TeacherConstraints.build(max_weekly_periods=1)}
    tracker = AvailabilityTracker(_catalog(), constraints)
    tracker.reserve("t1", "c1", MON_1)

    assert tracker.blocking_reason("t1", "c1", MON_2) == TEACHER_WEEKLY_CAP_REACHED
    assert tracker.flexibility("t1") == 0


def test_default_cap_applies_when_teacher_has_none():
    tracker = AvailabilityTracker(_catalog(), default_max_weekly_periods=2)
    assert tracker.weekly_cap("anyone") == 2


def test_seed_entries_occupy_slots():
    seeded = [ScheduledEntry("c9", "t1", LessonRef.subject("math"), MON_1)]
    tracker = AvailabilityTracker(_catalog(), seed_entries=seeded)

    assert tracker.blocking_reason("t1", "c1", MON_1) == TEACHER_BUSY
    assert tracker.blocking_reason("t2", "c9", MON_1) == CLASS_BUSY
    assert tracker.teacher_day_load("t1", Day.MON) == 1
    assert tracker.flexibility("t1") == 5


def test_days_outside_the_week_and_bad_periods_are_ignored():
    constraints = TeacherConstraints.build(
        unavailable_days=["SATURDAY", "monday", "Sunday"],
        unavailable_periods=["3", "after lunch", None],
    )

    assert constraints.unavailable_days == frozenset({Day.MON})
    assert constraints.unavailable_periods == frozenset({3})


def test_consecutive_limit_counts_runs_on_both_sides():
    seeded = [ScheduledEntry("c9", "t1", LessonRef.subject("math"), MON_2)]
    tracker = AvailabilityTracker(_catalog(), seed_entries=seeded, max_consecutive_periods=2)
    tracker.reserve("t1", "c1", SlotId(Day.MON, 3))

    assert tracker.consecutive_run("t1", MON_1) == 3
    assert tracker.blocking_reason("t1", "c1", MON_1) == TEACHER_CONSECUTIVE_LIMIT
    assert tracker.is_free("t1", "c1", SlotId(Day.TUE, 1))
    assert tracker.is_free("t2", "c2", MON_1)


def test_consecutive_limit_is_off_by_default():
    tracker = AvailabilityTracker(_catalog())
    tracker.reserve("t1", "c1", MON_1)
    tracker.reserve("t1", "c1", MON_2)

    assert tracker.is_free("t1", "c1", SlotId(Day.MON, 3))

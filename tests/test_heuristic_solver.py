from collections import Counter

from solver.availability import (
    TEACHER_CONSECUTIVE_LIMIT,
    TEACHER_WEEKLY_CAP_REACHED,
    AvailabilityTracker,
    TeacherConstraints,
)
from solver.conflicts import ADD_TIME_SLOTS, SUGGESTIONS_BY_REASON, ConflictKind
from solver.demands import Demand, LessonRef, ScheduledEntry
from solver.heuristic_solver import TIME_BUDGET_EXHAUSTED, HeuristicSolver, audit_schedule
from solver.policy import GenerationPolicy
from solver.slots import CatalogSlot, Day, SlotCatalog, SlotId


def _demand(order, cls, teacher, periods, lesson="math", *, module=False, category=None):
    return Demand(
        class_id=cls,
        teacher_id=teacher,
        lesson=LessonRef.module(lesson) if module else LessonRef.subject(lesson),
        periods_required=periods,
        order=order,
        category=category,
        class_name=cls.upper(),
        teacher_name=teacher.title(),
        lesson_name=lesson.title(),
    )


def _solve(catalog, demands, constraints=None, policy=None, **kwargs):
    tracker = AvailabilityTracker(catalog, constraints)
    return tracker, HeuristicSolver(tracker, policy, **kwargs).solve(demands)


def _assert_no_double_booking(entries):
    teacher_slots = Counter((e.teacher_id, e.slot) for e in entries)
    class_slots = Counter((e.class_id, e.slot) for e in entries)
    assert max(teacher_slots.values(), default=0) <= 1
    assert max(class_slots.values(), default=0) <= 1


def test_five_periods_spread_over_five_days():
    catalog = SlotCatalog.uniform(list(Day), range(1, 4))
    _tracker, outcome = _solve(catalog, [_demand(0, "s1a", "alice", 5)])

    assert outcome.conflicts == []
    assert len(outcome.entries) == 5
    assert len({e.slot.day for e in outcome.entries}) == 5
    assert outcome.placed == {0: 5}


def test_first_placements_take_earliest_period_of_each_day():
    catalog = SlotCatalog.uniform(["MON", "TUE"], range(1, 4))
    _tracker, outcome = _solve(catalog, [_demand(0, "c1", "t1", 3)])

    assert [e.slot for e in outcome.entries] == [
        SlotId(Day.MON, 1),
        SlotId(Day.TUE, 1),
        SlotId(Day.MON, 2),
    ]


def test_shared_teacher_is_never_double_booked():
    catalog = SlotCatalog.uniform(["MON"], range(1, 4))
    demands = [_demand(0, "c1", "alice", 2), _demand(1, "c2", "alice", 2)]
    _tracker, outcome = _solve(catalog, demands)

    _assert_no_double_booking(outcome.entries)
    assert len(outcome.entries) == 3
    assert [c.kind for c in outcome.conflicts] == [ConflictKind.UNPLACEABLE_PERIOD]
    conflict = outcome.conflicts[0]
    assert "Alice" in conflict.message
    assert conflict.related_demand.order == 1
    assert conflict.attempted_slots
    assert outcome.placed == {0: 2, 1: 1}


def test_capacity_boundary():
    catalog = SlotCatalog.uniform(["MON", "TUE"], range(1, 3))

    _tracker, exact = _solve(catalog, [_demand(0, "c1", "t1", 4)])
    assert exact.conflicts == []
    assert len(exact.entries) == 4

    _tracker, over = _solve(catalog, [_demand(0, "c1", "t1", 5)])
    assert [c.kind for c in over.conflicts] == [ConflictKind.DEMAND_EXCEEDS_CAPACITY]
    assert over.entries == []


def test_zero_period_demand_produces_nothing():
    catalog = SlotCatalog.uniform(["MON"], range(1, 3))
    _tracker, outcome = _solve(catalog, [_demand(0, "c1", "t1", 0)])
    assert outcome.entries == []
    assert outcome.conflicts == []


def test_identical_inputs_give_identical_schedules():
    catalog = SlotCatalog.uniform(list(Day), range(1, 6))
    demands = [
        _demand(0, "c1", "t1", 4),
        _demand(1, "c1", "t2", 3, "physics"),
        _demand(2, "c2", "t1", 4),
        _demand(3, "c2", "t3", 6, "english"),
    ]
    _t1, first = _solve(catalog, demands)
    _t2, second = _solve(catalog, demands)
    assert first.entries == second.entries
    _assert_no_double_booking(first.entries)


def test_teacher_unavailability_is_respected():
    catalog = SlotCatalog.uniform(list(Day), range(1, 4))
    constraints = {"t1": TeacherConstraints.build(unavailable_days=["MONDAY"], unavailable_periods=[1])}
    _tracker, outcome = _solve(catalog, [_demand(0, "c1", "t1", 6)], constraints)

    assert len(outcome.entries) == 6
    assert all(e.slot.day != Day.MON for e in outcome.entries)
    assert all(e.slot.period != 1 for e in outcome.entries)


def test_weekly_cap_leaves_remaining_periods_unplaced():
    catalog = SlotCatalog.uniform(list(Day), range(1, 4))
    constraints = {"t1": TeacherConstraints.build(max_weekly_periods=3)}
    _tracker, outcome = _solve(catalog, [_demand(0, "c1", "t1", 5)], constraints)

    assert len(outcome.entries) == 3
    assert [c.kind for c in outcome.conflicts] == [ConflictKind.UNPLACEABLE_PERIOD] * 2
    assert any(TEACHER_WEEKLY_CAP_REACHED in c.details["reasons"] for c in outcome.conflicts)


def test_daily_limit_caps_repeats_per_day():
    catalog = SlotCatalog.uniform(["MON", "TUE"], range(1, 5))
    policy = GenerationPolicy(max_daily_periods_per_demand=1)
    _tracker, outcome = _solve(catalog, [_demand(0, "c1", "t1", 3)], policy=policy)

    assert len(outcome.entries) == 2
    assert {e.slot.day for e in outcome.entries} == {Day.MON, Day.TUE}
    assert len(outcome.conflicts) == 1
    assert outcome.conflicts[0].details["retries_used"] <= policy.retry_budget(3)


def test_core_modules_prefer_morning_slots():
    catalog = SlotCatalog(
        [
            CatalogSlot(Day.MON, 1, session="AFTERNOON"),
            CatalogSlot(Day.MON, 2, session="MORNING"),
        ]
    )
    _tracker, module_outcome = _solve(
        catalog, [_demand(0, "c1", "t1", 1, "welding", module=True, category="SPECIFIC")]
    )
    assert [e.slot for e in module_outcome.entries] == [SlotId(Day.MON, 2)]

    _tracker, subject_outcome = _solve(catalog, [_demand(0, "c1", "t1", 1)])
    assert [e.slot for e in subject_outcome.entries] == [SlotId(Day.MON, 1)]

    _tracker, complementary = _solve(
        catalog, [_demand(0, "c1", "t1", 1, "ethics", module=True, category="COMPLEMENTARY")]
    )
    assert [e.slot for e in complementary.entries] == [SlotId(Day.MON, 1)]


def test_expired_time_budget_abandons_remaining_units():
    catalog = SlotCatalog.uniform(["MON"], range(1, 4))
    _tracker, outcome = _solve(catalog, [_demand(0, "c1", "t1", 2)], deadline=10.0, clock=lambda: 11.0)

    assert outcome.timed_out
    assert outcome.entries == []
    assert len(outcome.conflicts) == 2
    assert all(c.details["reason"] == TIME_BUDGET_EXHAUSTED for c in outcome.conflicts)


def test_audit_reports_quota_violation_and_shortfall():
    catalog = SlotCatalog.uniform(["MON"], range(1, 5))
    seeded = [ScheduledEntry("other", "t1", LessonRef.subject("x"), SlotId(Day.MON, p)) for p in (1, 2, 3)]
    tracker = AvailabilityTracker(
        catalog, {"t1": TeacherConstraints.build(max_weekly_periods=2)}, seed_entries=seeded
    )
    demand = _demand(0, "c1", "t1", 3)

    conflicts = audit_schedule(tracker, [demand], {0: 1})

    assert [c.kind for c in conflicts] == [ConflictKind.QUOTA_VIOLATION, ConflictKind.UNDER_SCHEDULED]
    assert conflicts[0].details == {"load": 3, "max_weekly_periods": 2}
    assert conflicts[1].details["missing"] == 2


def test_consecutive_limit_skips_third_back_to_back_period():
    catalog = SlotCatalog.uniform(["MON"], range(1, 5))
    tracker = AvailabilityTracker(catalog, max_consecutive_periods=2)
    outcome = HeuristicSolver(tracker).solve([_demand(0, "c1", "t1", 3)])

    assert outcome.conflicts == []
    assert [e.slot.period for e in outcome.entries] == [1, 2, 4]
    assert tracker.blocking_reason("t1", "c2", SlotId(Day.MON, 3)) == TEACHER_CONSECUTIVE_LIMIT


def test_conflicts_carry_suggestions():
    catalog = SlotCatalog.uniform(list(Day), range(1, 4))
    constraints = {"t1": TeacherConstraints.build(max_weekly_periods=3)}
    _tracker, capped = _solve(catalog, [_demand(0, "c1", "t1", 5)], constraints)
    assert any(SUGGESTIONS_BY_REASON[TEACHER_WEEKLY_CAP_REACHED] in c.suggestions for c in capped.conflicts)
    assert all(c.suggestions for c in capped.conflicts)

    small = SlotCatalog.uniform(["MON"], range(1, 3))
    _tracker, over = _solve(small, [_demand(0, "c1", "t1", 3)])
    assert over.conflicts[0].suggestions[-1] == ADD_TIME_SLOTS
    assert "Math" in over.conflicts[0].suggestions[0]


def test_residual_demand_reports_weekly_numbering():
    catalog = SlotCatalog.uniform(["MON", "TUE"], range(1, 2))
    constraints = {"t1": TeacherConstraints.build(unavailable_days=["MON", "TUE"])}
    residual = _demand(0, "c1", "t1", 1).with_periods(1, already_placed=4)
    _tracker, outcome = _solve(catalog, [residual], constraints)

    assert outcome.placed == {0: 0}
    assert len(outcome.conflicts) == 1
    assert "period 5 of 5" in outcome.conflicts[0].message

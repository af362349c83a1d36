from solver.demands import Assignment, LessonRef, build_demands, extract_demands, order_demands


def _assignment(cls, teacher, periods, lesson="math"):
    return Assignment(
        class_id=cls,
        teacher_id=teacher,
        lesson=LessonRef.subject(lesson),
        periods_per_week=periods,
        class_name=cls.upper(),
        teacher_name=teacher.title(),
        lesson_name=lesson.title(),
    )


def test_every_row_yields_a_demand_and_zero_quota_warns():
    result = build_demands([_assignment("c1", "t1", 4), _assignment("c1", "t2", 0, "art")])

    assert [d.periods_required for d in result.demands] == [4, 0]
    assert [d.order for d in result.demands] == [0, 1]
    assert len(result.warnings) == 1
    assert "Art" in result.warnings[0]
    assert result.demands[1].units() == []


def test_negative_quota_is_treated_as_zero():
    result = build_demands([_assignment("c1", "t1", -3)])
    assert result.demands[0].periods_required == 0


def test_order_prefers_least_flexible_teacher_then_largest_demand():
    demands = build_demands(
        [
            _assignment("c1", "free", 2),
            _assignment("c1", "busy", 1),
            _assignment("c2", "free", 5),
            _assignment("c3", "busy", 1, "bio"),
        ]
    ).demands
    flex = {"free": 30, "busy": 4}

    ordered = order_demands(demands, flex.__getitem__)

    assert [(d.teacher_id, d.periods_required, d.order) for d in ordered] == [
        ("busy", 1, 1),
        ("busy", 1, 3),
        ("free", 5, 2),
        ("free", 2, 0),
    ]


def test_extract_orders_and_keeps_warnings():
    result = extract_demands([_assignment("c1", "t1", 0), _assignment("c1", "t2", 3)], lambda _t: 10)
    assert [d.teacher_id for d in result.demands] == ["t2", "t1"]
    assert result.warnings


def test_module_lesson_ref():
    ref = LessonRef.module("m1")
    assert ref.is_module
    assert ref.module_id == "m1"
    assert ref.subject_id is None

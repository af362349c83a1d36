import uuid
from types import SimpleNamespace

from models.school import School
from models.school_class import SchoolClass
from models.subject import Subject
from models.module import Module
from models.teacher import Teacher
from models.teacher_class_subject import TeacherClassSubject
from models.trainer_class_module import TrainerClassModule


def _seed(db, *, status="APPROVED"):
    school = School(id=uuid.uuid4(), name="Groupe Scolaire Kigali", status=status)
    klass = SchoolClass(id=uuid.uuid4(), school_id=school.id, name="S1 A")
    teacher = Teacher(id=uuid.uuid4(), school_id=school.id, full_name="Alice Uwase", role="TEACHER")
    trainer = Teacher(
        id=uuid.uuid4(),
        school_id=school.id,
        full_name="Eric Mugabo",
        role="TRAINER",
        unavailable_days=["FRIDAY"],
    )
    math = Subject(id=uuid.uuid4(), school_id=school.id, name="Mathematics", periods_per_week=5)
    welding = Module(
        id=uuid.uuid4(),
        school_id=school.id,
        name="Welding Basics",
        category="SPECIFIC",
        periods_per_week=4,
    )
    db.add_all([school, klass, teacher, trainer, math, welding])
    db.add(TeacherClassSubject(school_id=school.id, teacher_id=teacher.id, class_id=klass.id, subject_id=math.id))
    db.add(TrainerClassModule(school_id=school.id, trainer_id=trainer.id, class_id=klass.id, module_id=welding.id))
    ids = SimpleNamespace(id=school.id, klass=klass.id, teacher=teacher.id, trainer=trainer.id)
    db.commit()
    return ids


def _base(school):
    return f"/api/schools/{school.id}"


def test_health(client):
    resp = client.get("/health")
    assert resp.status_code == 200
    assert resp.json()["app"] == "ok"


def test_default_time_slots(client, db):
    school = _seed(db)

    resp = client.post(f"{_base(school)}/time-slots/default")
    assert resp.status_code == 201
    body = resp.json()
    assert body["count"] == 70

    listed = client.get(f"{_base(school)}/time-slots").json()
    teaching = [s for s in listed if not s["isBreak"]]
    assert len(teaching) == 50
    assert listed[0]["name"] == "Assembly"
    assert {s["session"] for s in teaching} == {"MORNING", "AFTERNOON"}

    # Re-applying keeps the same rows.
    again = client.post(f"{_base(school)}/time-slots/default").json()
    assert {s["id"] for s in again["timeSlots"]} == {s["id"] for s in body["timeSlots"]}


def test_generate_list_and_clear_class_timetable(client, db):
    school = _seed(db)
    client.post(f"{_base(school)}/time-slots/default")

    resp = client.post(f"{_base(school)}/timetables/generate", json={"classId": str(school.klass)})
    assert resp.status_code == 200
    body = resp.json()
    assert body["conflictCount"] == 0
    assert body["conflicts"] == []
    assert body["entriesWritten"] == 9
    assert body["className"] == "S1 A"
    assert body["mode"] == "regeneration"
    assert body["scope"] == "class"
    assert "error" not in body

    listed = client.get(f"{_base(school)}/timetables", params={"classId": str(school.klass)}).json()
    assert listed["count"] == 9
    slots = [(e["day"], e["period"]) for e in listed["entries"]]
    assert len(set(slots)) == 9
    assert slots == sorted(slots, key=lambda s: (["MON", "TUE", "WED", "THU", "FRI"].index(s[0]), s[1]))

    module_entries = [e for e in listed["entries"] if e["moduleId"] is not None]
    assert len(module_entries) == 4
    assert all(e["day"] != "FRI" for e in module_entries)
    # Core modules land in morning periods when they are free.
    assert all(e["period"] <= 5 for e in module_entries)

    math_days = {e["day"] for e in listed["entries"] if e["subjectName"] == "Mathematics"}
    assert len(math_days) >= 3

    existing = client.get(f"{_base(school)}/timetables/existing", params={"classId": str(school.klass)}).json()
    assert existing == {"hasTimetables": True, "count": 9}

    deleted = client.delete(f"{_base(school)}/timetables", params={"classId": str(school.klass)}).json()
    assert deleted["deletedCount"] == 9
    existing = client.get(f"{_base(school)}/timetables/existing").json()
    assert existing["hasTimetables"] is False


def test_generate_flags(client, db):
    school = _seed(db)
    client.post(f"{_base(school)}/time-slots/default")
    url = f"{_base(school)}/timetables/generate"
    first = client.post(url, json={"classId": str(school.klass)}).json()

    rejected = client.post(url, json={"classId": str(school.klass)}).json()
    assert rejected["conflictCount"] == 1
    assert rejected["conflicts"][0]["type"] == "TIMETABLES_EXIST"

    kept = client.post(url, json={"classId": str(school.klass), "incremental": True}).json()
    assert "already has timetables" in kept["message"]
    assert kept["mode"] == "incremental"
    assert kept["entriesWritten"] == 0

    regenerated = client.post(url, json={"classId": str(school.klass), "regenerate": True}).json()
    assert regenerated["entriesWritten"] == first["entriesWritten"]
    count = client.get(f"{_base(school)}/timetables/existing").json()["count"]
    assert count == first["entriesWritten"]


def test_generate_for_whole_school(client, db):
    school = _seed(db)
    client.post(f"{_base(school)}/time-slots/default")

    body = client.post(
        f"{_base(school)}/timetables/generate",
        json={"scope": "school", "schoolScope": "both"},
    ).json()

    assert body["scope"] == "school"
    assert body["schoolScope"] == "both"
    assert body["entriesWritten"] == 9


def test_structural_failures(client, db):
    school = _seed(db)
    url = f"{_base(school)}/timetables/generate"

    no_slots = client.post(url, json={"classId": str(school.klass)})
    assert no_slots.status_code == 400
    assert no_slots.json()["code"] == "NO_TIME_SLOTS"
    assert no_slots.json()["conflictCount"] == 0

    unknown_class = client.post(url, json={"classId": str(uuid.uuid4())})
    assert unknown_class.status_code == 404
    assert unknown_class.json()["code"] == "CLASS_NOT_FOUND"

    missing_id = client.post(url, json={"scope": "teacher"})
    assert missing_id.status_code == 400
    assert missing_id.json()["code"] == "TEACHER_ID_REQUIRED"

    bad_body = client.post(url, json={"classId": "not-a-uuid"})
    assert bad_body.status_code == 400

    unknown_school = client.post(f"/api/schools/{uuid.uuid4()}/timetables/generate", json={})
    assert unknown_school.status_code == 404
    assert unknown_school.json()["code"] == "SCHOOL_NOT_FOUND"


def test_unapproved_school_is_forbidden(client, db):
    school = _seed(db, status="PENDING")

    resp = client.post(f"{_base(school)}/timetables/generate", json={"classId": str(school.klass)})
    assert resp.status_code == 403
    assert resp.json()["code"] == "SCHOOL_NOT_APPROVED"


def test_unavailable_days_outside_the_week_do_not_break_generation(client, db):
    school = _seed(db)
    trainer = db.get(Teacher, school.trainer)
    trainer.unavailable_days = ["FRIDAY", "SATURDAY"]
    trainer.unavailable_periods = ["6", "evening"]
    db.commit()
    client.post(f"{_base(school)}/time-slots/default")

    resp = client.post(f"{_base(school)}/timetables/generate", json={"classId": str(school.klass)})

    assert resp.status_code == 200
    assert resp.json()["entriesWritten"] == 9


def test_delete_with_class_and_teacher_only_removes_that_pair(client, db):
    school = _seed(db)
    client.post(f"{_base(school)}/time-slots/default")
    client.post(f"{_base(school)}/timetables/generate", json={"classId": str(school.klass)})
    params = {"classId": str(school.klass), "teacherId": str(school.teacher)}

    existing = client.get(f"{_base(school)}/timetables/existing", params=params).json()
    deleted = client.delete(f"{_base(school)}/timetables", params=params).json()

    assert existing["count"] == 5
    assert deleted["deletedCount"] == 5
    remaining = client.get(f"{_base(school)}/timetables", params={"classId": str(school.klass)}).json()
    assert remaining["count"] == 4
    assert all(e["teacherId"] == str(school.trainer) for e in remaining["entries"])


def test_unplaced_periods_come_with_suggestions(client, db):
    school = _seed(db)
    trainer = db.get(Teacher, school.trainer)
    trainer.max_weekly_periods = 2
    db.commit()
    client.post(f"{_base(school)}/time-slots/default")

    body = client.post(f"{_base(school)}/timetables/generate", json={"classId": str(school.klass)}).json()

    unplaced = [c for c in body["conflicts"] if c["type"] == "UNPLACEABLE_PERIOD"]
    assert len(unplaced) == 2
    assert all(c["teacherId"] == str(school.trainer) for c in unplaced)
    assert all(c["suggestions"] for c in unplaced)
    assert body["entriesWritten"] == 7

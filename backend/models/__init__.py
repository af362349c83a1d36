from models.module import Module
from models.school import School
from models.school_class import SchoolClass
from models.subject import Subject
from models.teacher import Teacher
from models.teacher_class_subject import TeacherClassSubject
from models.time_slot import TimeSlot
from models.timetable_entry import TimetableEntry
from models.trainer_class_module import TrainerClassModule

__all__ = [
	"Module",
	"School",
	"SchoolClass",
	"Subject",
	"Teacher",
	"TeacherClassSubject",
	"TimeSlot",
	"TimetableEntry",
	"TrainerClassModule",
]

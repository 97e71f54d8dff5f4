from models.course_section import CourseSection
from models.lecturer import Lecturer
from models.room import Room
from models.timeslot import TimeSlot, build_time_slots
from models.class_group import ClassGroup
from models.catalog import Catalog, CatalogError, FeasibilityReport

__all__ = [
    "CourseSection",
    "Lecturer",
    "Room",
    "TimeSlot",
    "build_time_slots",
    "ClassGroup",
    "Catalog",
    "CatalogError",
    "FeasibilityReport",
]

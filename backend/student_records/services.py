"""Business logic services used by HTTP controllers.

Services are thin: they parse identifiers, stamp timestamps, apply the
few domain rules (a course with enrolled students cannot be deleted) and
persist through repositories. They raise the errors in `errors` and let
pymongo errors propagate; controllers decide the HTTP status.
"""

import json
import logging
from typing import Any, Dict, List

from bson import ObjectId
from pymongo.database import Database

from . import models, repositories
from .errors import CourseInUseError, InvalidIdentifierError, NotFoundError
from .schemas import CourseCreate, CourseUpdate, StudentCreate, StudentUpdate

logger = logging.getLogger("student_records.services")


def _ctx(**fields) -> str:
    return json.dumps(fields, ensure_ascii=True, default=str)


def parse_object_id(value: str) -> ObjectId:
    """Return `value` as an ObjectId or raise `InvalidIdentifierError`."""
    if not ObjectId.is_valid(value):
        raise InvalidIdentifierError(value)
    return ObjectId(value)


class CourseService:
    """CRUD for courses plus the enrolled-students delete guard."""
    def __init__(self, db: Database):
        self.course_repo = repositories.CourseRepository(db)
        self.student_repo = repositories.StudentRepository(db)

    def list(self) -> List[Dict[str, Any]]:
        courses = self.course_repo.list_by_name()
        logger.info("courses_listed %s", _ctx(count=len(courses)))
        return courses

    def get(self, course_id: str) -> Dict[str, Any]:
        course = self.course_repo.get(parse_object_id(course_id))
        if course is None:
            raise NotFoundError("Course", course_id)
        return course

    def create(self, payload: CourseCreate) -> Dict[str, Any]:
        doc = models.CourseDocument(**payload.model_dump())
        course = self.course_repo.create(doc.model_dump())
        logger.info("course_created %s", _ctx(courseId=course["_id"], name=course["name"]))
        return course

    def update(self, course_id: str, payload: CourseUpdate) -> Dict[str, Any]:
        changes = payload.model_dump(exclude_unset=True)
        changes["updatedAt"] = models.utcnow()
        course = self.course_repo.update(parse_object_id(course_id), changes)
        if course is None:
            logger.warning("course_update_not_found %s", _ctx(courseId=course_id))
            raise NotFoundError("Course", course_id)
        logger.info("course_updated %s", _ctx(courseId=course["_id"], name=course["name"]))
        return course

    def delete(self, course_id: str) -> Dict[str, Any]:
        """Delete a course unless students still reference it.

        Students reference a course by storing its identifier string in
        their `course` field. The check and the delete are separate store
        calls.
        """
        enrolled = self.student_repo.count_for_course(course_id)
        if enrolled > 0:
            logger.warning("course_delete_blocked %s", _ctx(courseId=course_id, enrolledStudents=enrolled))
            raise CourseInUseError(course_id, enrolled)
        course = self.course_repo.delete(parse_object_id(course_id))
        if course is None:
            logger.warning("course_delete_not_found %s", _ctx(courseId=course_id))
            raise NotFoundError("Course", course_id)
        logger.info("course_deleted %s", _ctx(courseId=course["_id"], name=course["name"]))
        return course


class StudentService:
    """CRUD and free-text search for students."""
    def __init__(self, db: Database):
        self.student_repo = repositories.StudentRepository(db)

    def list(self) -> List[Dict[str, Any]]:
        students = self.student_repo.list_newest_first()
        logger.info("students_listed %s", _ctx(count=len(students)))
        return students

    def get(self, student_id: str) -> Dict[str, Any]:
        student = self.student_repo.get(parse_object_id(student_id))
        if student is None:
            raise NotFoundError("Student", student_id)
        return student

    def create(self, payload: StudentCreate) -> Dict[str, Any]:
        doc = models.StudentDocument(**payload.model_dump())
        student = self.student_repo.create(doc.model_dump())
        logger.info(
            "student_created %s",
            _ctx(studentId=student["_id"], name=student["name"], course=student["course"]),
        )
        return student

    def update(self, student_id: str, payload: StudentUpdate) -> Dict[str, Any]:
        changes = payload.model_dump(exclude_unset=True)
        changes["updatedAt"] = models.utcnow()
        student = self.student_repo.update(parse_object_id(student_id), changes)
        if student is None:
            logger.warning("student_update_not_found %s", _ctx(studentId=student_id))
            raise NotFoundError("Student", student_id)
        logger.info(
            "student_updated %s",
            _ctx(studentId=student["_id"], name=student["name"], course=student["course"]),
        )
        return student

    def delete(self, student_id: str) -> Dict[str, Any]:
        student = self.student_repo.delete(parse_object_id(student_id))
        if student is None:
            logger.warning("student_delete_not_found %s", _ctx(studentId=student_id))
            raise NotFoundError("Student", student_id)
        logger.info(
            "student_deleted %s",
            _ctx(studentId=student["_id"], name=student["name"], course=student["course"]),
        )
        return student

    def search(self, term: str) -> List[Dict[str, Any]]:
        """Return students whose name, course or email contains `term`.

        Matching is case-insensitive and literal; an empty term matches
        every student.
        """
        logger.info("student_search_started %s", _ctx(searchTerm=term))
        students = self.student_repo.search(term)
        logger.info("student_search_completed %s", _ctx(searchTerm=term, resultsCount=len(students)))
        return students


class DashboardService:
    """Read-only counters for the admin dashboard."""
    def __init__(self, db: Database):
        self.course_repo = repositories.CourseRepository(db)
        self.student_repo = repositories.StudentRepository(db)

    def stats(self) -> Dict[str, Any]:
        total_students = self.student_repo.count()
        active_students = self.student_repo.count({"status": "active"})
        total_courses = self.course_repo.count()
        active_courses = self.course_repo.count({"status": "active"})
        # inactive doubles as "completed the course"
        graduates = self.student_repo.count({"status": "inactive"})
        course_counts = self.student_repo.count_by_course()
        stats = {
            "totalStudents": total_students,
            "activeStudents": active_students,
            "totalCourses": total_courses,
            "activeCourses": active_courses,
            "graduates": graduates,
            "courseCounts": course_counts,
            "successRate": success_rate(graduates, total_students),
        }
        logger.info("dashboard_stats %s", _ctx(**{k: v for k, v in stats.items() if k != "courseCounts"}))
        return stats


def success_rate(graduates: int, total: int) -> int:
    """Percentage of graduates, rounded half up; 0 when there are no students."""
    if total <= 0:
        return 0
    return int(graduates * 100 / total + 0.5)

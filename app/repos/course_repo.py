"""Read-only views of data owned by course authoring and the forums.

Course, lesson and forum CRUD live in other services.  The progress
core only needs lookups, so these repos are small and the in-memory
versions double as test fixtures.
"""

from __future__ import annotations

from typing import Protocol

from app.models.course import Course, ForumActivity


class CourseRepo(Protocol):
    def get(self, course_id: str) -> Course | None: ...
    def add(self, course: Course) -> None: ...
    def find_by_lesson(self, lesson_id: str) -> Course | None: ...


class ForumActivityRepo(Protocol):
    def get(self, student_id: str, course_id: str) -> ForumActivity | None: ...
    def set(self, activity: ForumActivity) -> None: ...


class InMemoryCourseRepo:
    def __init__(self) -> None:
        self._by_id: dict[str, Course] = {}

    def get(self, course_id: str) -> Course | None:
        return self._by_id.get(course_id)

    def add(self, course: Course) -> None:
        if course.id in self._by_id:
            raise ValueError("course already exists")
        self._by_id[course.id] = course

    def find_by_lesson(self, lesson_id: str) -> Course | None:
        for course in self._by_id.values():
            if course.has_lesson(lesson_id):
                return course
        return None


class InMemoryForumActivityRepo:
    def __init__(self) -> None:
        self._store: dict[tuple[str, str], ForumActivity] = {}

    def get(self, student_id: str, course_id: str) -> ForumActivity | None:
        return self._store.get((student_id, course_id))

    def set(self, activity: ForumActivity) -> None:
        self._store[(activity.student_id, activity.course_id)] = activity

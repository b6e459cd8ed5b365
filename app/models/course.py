from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class Course:
    """Catalog entry, owned by course authoring.

    Only the parts the progress core reads: publication state, capacity,
    the instructor who grades it, and the ordered lesson and quiz ids
    whose counts drive progress.
    """

    id: str
    title: str
    instructor_id: str | None = None
    is_published: bool = True
    max_students: int = 50
    lesson_ids: tuple[str, ...] = ()
    quiz_ids: tuple[str, ...] = ()

    @property
    def total_lessons(self) -> int:
        return len(self.lesson_ids)

    @property
    def total_quizzes(self) -> int:
        return len(self.quiz_ids)

    def has_lesson(self, lesson_id: str) -> bool:
        return lesson_id in self.lesson_ids


@dataclass(frozen=True, slots=True)
class ForumActivity:
    """Post and reply counts for one student in one course's forums."""

    student_id: str
    course_id: str
    posts_count: int = 0
    replies_count: int = 0

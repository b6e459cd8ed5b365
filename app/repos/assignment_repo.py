from __future__ import annotations

import threading
from collections.abc import Callable
from typing import Protocol

from app.models.assignment import Assignment, AssignmentSubmission


class AssignmentRepo(Protocol):
    def get(self, assignment_id: str) -> Assignment | None: ...
    def add(self, assignment: Assignment) -> None: ...


class SubmissionRepo(Protocol):
    def get(self, submission_id: str) -> AssignmentSubmission | None: ...
    def get_for(
        self, assignment_id: str, student_id: str
    ) -> AssignmentSubmission | None: ...
    def upsert(
        self,
        assignment_id: str,
        student_id: str,
        fn: Callable[[AssignmentSubmission | None], AssignmentSubmission],
    ) -> AssignmentSubmission: ...
    def update(
        self,
        submission_id: str,
        fn: Callable[[AssignmentSubmission], AssignmentSubmission],
    ) -> AssignmentSubmission | None: ...
    def list_by_assignment(self, assignment_id: str) -> list[AssignmentSubmission]: ...
    def list_for_course(
        self, student_id: str, course_id: str
    ) -> list[AssignmentSubmission]: ...


class InMemoryAssignmentRepo:
    def __init__(self) -> None:
        self._by_id: dict[str, Assignment] = {}

    def get(self, assignment_id: str) -> Assignment | None:
        return self._by_id.get(assignment_id)

    def add(self, assignment: Assignment) -> None:
        if assignment.id in self._by_id:
            raise ValueError("assignment already exists")
        self._by_id[assignment.id] = assignment


class InMemorySubmissionRepo:
    """One submission per (assignment_id, student_id)."""

    def __init__(self) -> None:
        self._by_key: dict[tuple[str, str], AssignmentSubmission] = {}
        self._lock = threading.Lock()

    def get(self, submission_id: str) -> AssignmentSubmission | None:
        for s in self._by_key.values():
            if s.id == submission_id:
                return s
        return None

    def get_for(self, assignment_id: str, student_id: str) -> AssignmentSubmission | None:
        return self._by_key.get((assignment_id, student_id))

    def upsert(
        self,
        assignment_id: str,
        student_id: str,
        fn: Callable[[AssignmentSubmission | None], AssignmentSubmission],
    ) -> AssignmentSubmission:
        """Atomically build the new submission from the current one (or None)."""
        key = (assignment_id, student_id)
        with self._lock:
            submission = fn(self._by_key.get(key))
            self._by_key[key] = submission
            return submission

    def update(
        self,
        submission_id: str,
        fn: Callable[[AssignmentSubmission], AssignmentSubmission],
    ) -> AssignmentSubmission | None:
        with self._lock:
            for key, s in self._by_key.items():
                if s.id == submission_id:
                    updated = fn(s)
                    self._by_key[key] = updated
                    return updated
            return None

    def list_by_assignment(self, assignment_id: str) -> list[AssignmentSubmission]:
        return sorted(
            (s for s in self._by_key.values() if s.assignment_id == assignment_id),
            key=lambda s: s.submitted_at,
            reverse=True,
        )

    def list_for_course(self, student_id: str, course_id: str) -> list[AssignmentSubmission]:
        return [
            s
            for s in self._by_key.values()
            if s.student_id == student_id and s.course_id == course_id
        ]

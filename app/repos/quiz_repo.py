from __future__ import annotations

import threading
from typing import Protocol

from app.models.quiz import Quiz, QuizAttempt


class AttemptConflictError(ValueError):
    """Attempt number already taken or out of sequence for (student, quiz)."""


class QuizRepo(Protocol):
    def get(self, quiz_id: str) -> Quiz | None: ...
    def add(self, quiz: Quiz) -> None: ...


class QuizAttemptRepo(Protocol):
    def list_for(self, student_id: str, quiz_id: str) -> list[QuizAttempt]: ...
    def list_for_course(self, student_id: str, course_id: str) -> list[QuizAttempt]: ...
    def add(self, attempt: QuizAttempt) -> None: ...


class InMemoryQuizRepo:
    def __init__(self) -> None:
        self._by_id: dict[str, Quiz] = {}

    def get(self, quiz_id: str) -> Quiz | None:
        return self._by_id.get(quiz_id)

    def add(self, quiz: Quiz) -> None:
        if quiz.id in self._by_id:
            raise ValueError("quiz already exists")
        self._by_id[quiz.id] = quiz


class InMemoryQuizAttemptRepo:
    """Attempts keyed by (student_id, quiz_id), numbered 1..N without gaps.

    add() enforces the numbering under a lock: the same guarantee the
    unique (student_id, quiz_id, attempt_number) constraint gives in SQL.
    """

    def __init__(self) -> None:
        self._store: dict[tuple[str, str], list[QuizAttempt]] = {}
        self._lock = threading.Lock()

    def list_for(self, student_id: str, quiz_id: str) -> list[QuizAttempt]:
        return list(self._store.get((student_id, quiz_id), []))

    def list_for_course(self, student_id: str, course_id: str) -> list[QuizAttempt]:
        return [
            a
            for (sid, _), attempts in self._store.items()
            if sid == student_id
            for a in attempts
            if a.course_id == course_id
        ]

    def add(self, attempt: QuizAttempt) -> None:
        key = (attempt.student_id, attempt.quiz_id)
        with self._lock:
            attempts = self._store.setdefault(key, [])
            expected = len(attempts) + 1
            if attempt.attempt_number != expected:
                raise AttemptConflictError(
                    f"attempt {attempt.attempt_number} out of sequence (expected {expected})"
                )
            attempts.append(attempt)

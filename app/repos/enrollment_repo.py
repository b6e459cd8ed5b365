from __future__ import annotations

import threading
from collections.abc import Callable
from dataclasses import replace
from typing import Protocol

from app.models.enrollment import Enrollment


class EnrollmentExistsError(ValueError):
    pass


class CourseFullError(ValueError):
    pass


class EnrollmentRepo(Protocol):
    def get(self, student_id: str, course_id: str) -> Enrollment | None: ...
    def add(self, enrollment: Enrollment, *, capacity: int | None = None) -> None: ...
    def update(
        self,
        student_id: str,
        course_id: str,
        fn: Callable[[Enrollment], Enrollment],
    ) -> tuple[Enrollment, Enrollment] | None: ...
    def remove(
        self,
        student_id: str,
        course_id: str,
        guard: Callable[[Enrollment], None] | None = None,
    ) -> Enrollment | None: ...
    def count_by_course(self, course_id: str) -> int: ...
    def list_by_course(self, course_id: str) -> list[Enrollment]: ...
    def list_by_student(self, student_id: str) -> list[Enrollment]: ...
    def get_by_certificate_id(self, certificate_id: str) -> Enrollment | None: ...


class InMemoryEnrollmentRepo:
    """Enrollments keyed by (student_id, course_id).

    Every read-modify-write happens under one lock, so two lesson
    completions for the same enrollment can never both read the old
    completed set.

    Certificate ids are unique across all enrollments, like the
    certificate_id column.  A freshly minted id that is already held by
    another enrollment gets a numeric suffix (-2, -3, ...) before it is
    stored, so verification always finds exactly one holder.
    """

    def __init__(self) -> None:
        self._store: dict[tuple[str, str], Enrollment] = {}
        self._by_certificate: dict[str, tuple[str, str]] = {}
        self._lock = threading.Lock()

    def get(self, student_id: str, course_id: str) -> Enrollment | None:
        return self._store.get((student_id, course_id))

    def add(self, enrollment: Enrollment, *, capacity: int | None = None) -> None:
        key = (enrollment.student_id, enrollment.course_id)
        with self._lock:
            if key in self._store:
                raise EnrollmentExistsError("already enrolled")
            if capacity is not None and self._count(enrollment.course_id) >= capacity:
                raise CourseFullError("course is full")
            if enrollment.certificate_id:
                enrollment = self._with_unique_certificate(enrollment)
            self._store[key] = enrollment

    def update(
        self,
        student_id: str,
        course_id: str,
        fn: Callable[[Enrollment], Enrollment],
    ) -> tuple[Enrollment, Enrollment] | None:
        """Apply fn atomically.  Returns (before, after), or None if missing."""
        key = (student_id, course_id)
        with self._lock:
            before = self._store.get(key)
            if before is None:
                return None
            after = fn(before)
            if after.certificate_id and after.certificate_id != before.certificate_id:
                after = self._with_unique_certificate(after)
            self._store[key] = after
            return before, after

    def remove(
        self,
        student_id: str,
        course_id: str,
        guard: Callable[[Enrollment], None] | None = None,
    ) -> Enrollment | None:
        """Delete the enrollment; guard may raise to veto the removal."""
        key = (student_id, course_id)
        with self._lock:
            existing = self._store.get(key)
            if existing is None:
                return None
            if guard is not None:
                guard(existing)
            del self._store[key]
            if existing.certificate_id:
                self._by_certificate.pop(existing.certificate_id, None)
            return existing

    def count_by_course(self, course_id: str) -> int:
        return self._count(course_id)

    def list_by_course(self, course_id: str) -> list[Enrollment]:
        return [e for e in self._store.values() if e.course_id == course_id]

    def list_by_student(self, student_id: str) -> list[Enrollment]:
        return [e for e in self._store.values() if e.student_id == student_id]

    def get_by_certificate_id(self, certificate_id: str) -> Enrollment | None:
        key = self._by_certificate.get(certificate_id)
        return self._store.get(key) if key is not None else None

    def _with_unique_certificate(self, enrollment: Enrollment) -> Enrollment:
        # Caller holds the lock.
        key = (enrollment.student_id, enrollment.course_id)
        base = enrollment.certificate_id
        candidate, n = base, 2
        while self._by_certificate.get(candidate, key) != key:
            candidate = f"{base}-{n}"
            n += 1
        self._by_certificate[candidate] = key
        if candidate == base:
            return enrollment
        return replace(enrollment, certificate_id=candidate)

    def _count(self, course_id: str) -> int:
        return sum(1 for cid in (k[1] for k in self._store) if cid == course_id)

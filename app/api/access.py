"""Course-level access checks for staff endpoints.

These are plain functions (not FastAPI dependencies) because they need
both the Principal and the course the request touches, which for
submission endpoints is only known after the submission is loaded.
Call them at the top of an endpoint body, after the lookup.
"""

from __future__ import annotations

import logging

from fastapi import HTTPException, status

from app.models.course import Course
from app.models.principal import Principal

logger = logging.getLogger(__name__)


def check_course_staff(principal: Principal, course: Course | None) -> None:
    """Raise 403 unless the principal teaches the course or is an admin.

    A course without a recorded instructor is admin-only.
    """
    if principal.is_admin():
        return
    if course is not None and course.instructor_id == principal.user_id:
        return
    logger.warning(
        "Access denied: user=%s does not teach course=%s",
        principal.user_id,
        course.id if course is not None else None,
    )
    raise HTTPException(
        status_code=status.HTTP_403_FORBIDDEN,
        detail="You can only manage courses you teach",
    )

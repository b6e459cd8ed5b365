"""Progress read model, served through the read-through cache.

  GET /v1/courses/{course_id}/progress   one enrollment
  GET /v1/progress                       all of the caller's enrollments,
                                         most recently accessed first

Reads never feed a decision; see app/services/cache.py for why a
stale-by-seconds answer is acceptable here.
"""

from __future__ import annotations

import json
from typing import Annotated

from fastapi import APIRouter, Depends

from app.api.dependencies import require_user
from app.api.schemas import EnrollmentOut, enrollment_out
from app.middleware.request_context import bind_log_fields
from app.models.principal import Principal
from app.repos.registry import enrollment_repo
from app.services import enrollment_service
from app.services.cache import (
    PROGRESS_CACHE_TTL,
    cache_service,
    progress_key,
    progress_list_key,
)

router = APIRouter(tags=["progress"])


@router.get("/v1/courses/{course_id}/progress", response_model=EnrollmentOut)
async def get_course_progress(
    course_id: str,
    principal: Annotated[Principal, Depends(require_user)],
) -> EnrollmentOut:
    bind_log_fields(course_id=course_id)
    cache_key = progress_key(principal.user_id, course_id)

    cached = await cache_service.get(cache_key)
    if cached is not None:
        return EnrollmentOut.model_validate_json(cached)

    enrollment = enrollment_service.get_enrollment(
        enrollment_repo, student_id=principal.user_id, course_id=course_id
    )
    out = enrollment_out(enrollment)
    await cache_service.set(cache_key, out.model_dump_json(), PROGRESS_CACHE_TTL)
    return out


@router.get("/v1/progress", response_model=list[EnrollmentOut])
async def list_progress(
    principal: Annotated[Principal, Depends(require_user)],
) -> list[EnrollmentOut]:
    cache_key = progress_list_key(principal.user_id)

    cached = await cache_service.get(cache_key)
    if cached is not None:
        return [EnrollmentOut.model_validate(e) for e in json.loads(cached)]

    out = [
        enrollment_out(e)
        for e in enrollment_service.list_enrollments(
            enrollment_repo, student_id=principal.user_id
        )
    ]
    await cache_service.set(
        cache_key,
        json.dumps([e.model_dump(mode="json") for e in out]),
        PROGRESS_CACHE_TTL,
    )
    return out

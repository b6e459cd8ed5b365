"""Certificates minted by course completion.

The certificate document itself is rendered by another service (it
consumes the certificate_issuance queue).  This router only exposes
what the enrollment record guarantees: the id and when it was issued.

  GET /v1/certificates                            caller's certificates
  GET /v1/certificates/{certificate_id}/verify    public lookup
"""

from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Depends

from app.api.dependencies import require_user
from app.api.schemas import CertificateOut, certificate_out
from app.models.principal import Principal
from app.repos.registry import enrollment_repo
from app.services import enrollment_service

router = APIRouter(prefix="/v1/certificates", tags=["certificates"])


@router.get("", response_model=list[CertificateOut])
def list_my_certificates(
    principal: Annotated[Principal, Depends(require_user)],
) -> list[CertificateOut]:
    return [
        certificate_out(e)
        for e in enrollment_service.list_certificates(
            enrollment_repo, student_id=principal.user_id
        )
    ]


@router.get("/{certificate_id}/verify", response_model=CertificateOut)
def verify_certificate(certificate_id: str) -> CertificateOut:
    """No auth: employers check a certificate id without an account."""
    return certificate_out(
        enrollment_service.verify_certificate(enrollment_repo, certificate_id)
    )

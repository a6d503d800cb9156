"""API routes exposing resume creation and template entitlement."""
from __future__ import annotations

import logging
import os
from typing import Optional

from fastapi import APIRouter, Cookie, Depends, HTTPException, Query, Response, status

from ... import app_context
from ..entitlements import Plan, PlanConfigurationError
from ..feature_gates import FeatureGateError
from ..schemas.resumes import (
    ResumeCreateRequest,
    ResumeListResponse,
    ResumeOut,
    ResumeUpdateRequest,
    TemplateUsageResponse,
)
from ..services.resumes import get_resume_service, resolve_user_plan

logger = logging.getLogger(__name__)

_SESSION_COOKIE_NAME = os.getenv("SESSION_COOKIE_NAME", "session")


def _get_current_user(
    session_token: Optional[str] = Cookie(None, alias=_SESSION_COOKIE_NAME),
):
    return app_context.get_current_user(session_token=session_token)


def _get_current_plan(current_user=Depends(_get_current_user)) -> Plan:
    try:
        return resolve_user_plan(current_user)
    except PlanConfigurationError as exc:
        raise _http_error(exc) from exc


def _http_error(exc: Exception) -> HTTPException:
    if isinstance(exc, FeatureGateError):
        return exc.to_http_exception()
    if isinstance(exc, PlanConfigurationError):
        logger.error("Plan configuration error: %s", exc)
        return HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Plan configuration error. Please contact support.",
        )
    if isinstance(exc, LookupError):
        return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc))
    if isinstance(exc, PermissionError):
        return HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=str(exc))
    return HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc))


_HANDLED_ERRORS = (FeatureGateError, PlanConfigurationError, LookupError, PermissionError, ValueError)


router = APIRouter(prefix="/api/v1/resumes", tags=["resumes"])


@router.post("", response_model=ResumeOut, status_code=status.HTTP_201_CREATED)
def create_resume(
    payload: ResumeCreateRequest,
    *,
    current_user=Depends(_get_current_user),
    plan: Plan = Depends(_get_current_plan),
) -> ResumeOut:
    service = get_resume_service()
    try:
        resume = service.create_resume(
            str(current_user.id),
            plan,
            title=payload.title,
            template_id=payload.template_id,
            resume_data=payload.resume_data,
            status=payload.status,
        )
    except _HANDLED_ERRORS as exc:
        raise _http_error(exc) from exc
    return ResumeOut.from_resume(resume)


@router.get("", response_model=ResumeListResponse)
def list_resumes(
    status_filter: Optional[str] = Query(default=None, alias="status"),
    *,
    current_user=Depends(_get_current_user),
) -> ResumeListResponse:
    service = get_resume_service()
    try:
        resumes = service.list_resumes(str(current_user.id), status=status_filter)
    except ValueError as exc:
        raise _http_error(exc) from exc
    return ResumeListResponse.from_resumes(resumes)


@router.get("/template-usage", response_model=TemplateUsageResponse)
def get_template_usage(
    *,
    current_user=Depends(_get_current_user),
    plan: Plan = Depends(_get_current_plan),
) -> TemplateUsageResponse:
    service = get_resume_service()
    try:
        summary = service.template_usage(str(current_user.id), plan)
    except PlanConfigurationError as exc:
        raise _http_error(exc) from exc
    return TemplateUsageResponse.from_summary(summary)


@router.get("/{resume_id}", response_model=ResumeOut)
def get_resume(
    resume_id: str,
    *,
    current_user=Depends(_get_current_user),
) -> ResumeOut:
    service = get_resume_service()
    try:
        resume = service.get_resume(str(current_user.id), resume_id)
    except (LookupError, PermissionError) as exc:
        raise _http_error(exc) from exc
    return ResumeOut.from_resume(resume)


@router.put("/{resume_id}", response_model=ResumeOut)
def update_resume(
    resume_id: str,
    payload: ResumeUpdateRequest,
    *,
    current_user=Depends(_get_current_user),
    plan: Plan = Depends(_get_current_plan),
) -> ResumeOut:
    service = get_resume_service()
    try:
        resume = service.update_resume(
            str(current_user.id),
            plan,
            resume_id,
            title=payload.title,
            template_id=payload.template_id,
            resume_data=payload.resume_data,
            status=payload.status,
            is_public=payload.is_public,
        )
    except _HANDLED_ERRORS as exc:
        raise _http_error(exc) from exc
    return ResumeOut.from_resume(resume)


@router.post(
    "/{resume_id}/duplicate",
    response_model=ResumeOut,
    status_code=status.HTTP_201_CREATED,
)
def duplicate_resume(
    resume_id: str,
    *,
    current_user=Depends(_get_current_user),
    plan: Plan = Depends(_get_current_plan),
) -> ResumeOut:
    service = get_resume_service()
    try:
        resume = service.duplicate_resume(str(current_user.id), plan, resume_id)
    except _HANDLED_ERRORS as exc:
        raise _http_error(exc) from exc
    return ResumeOut.from_resume(resume)


@router.delete("/{resume_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_resume(
    resume_id: str,
    *,
    current_user=Depends(_get_current_user),
) -> Response:
    service = get_resume_service()
    try:
        service.delete_resume(str(current_user.id), resume_id)
    except (LookupError, PermissionError) as exc:
        raise _http_error(exc) from exc
    return Response(status_code=status.HTTP_204_NO_CONTENT)

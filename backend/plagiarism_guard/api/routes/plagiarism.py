"""Similar-submission lookup and plagiarism report endpoints for reviewers."""

from __future__ import annotations

from functools import lru_cache

from fastapi import APIRouter, Depends, Header, HTTPException, Query, status

from plagiarism_guard.core.config import get_settings
from plagiarism_guard.core.errors import PersistenceError, SubmissionNotFoundError
from plagiarism_guard.db.session import get_session_factory
from plagiarism_guard.schemas import PlagiarismReport, SimilarSubmissionsResponse
from plagiarism_guard.services.plagiarism import PlagiarismService, build_plagiarism_service

router = APIRouter(prefix="/submissions", tags=["plagiarism"])


@lru_cache()
def get_plagiarism_service() -> PlagiarismService:
    return build_plagiarism_service(get_session_factory())


@router.get("/{submission_id}/similar", response_model=SimilarSubmissionsResponse)
async def get_similar_submissions(
    submission_id: str,
    tenant_id: str = Header(..., alias="X-Tenant-ID", min_length=1),
    top_k: int = Query(default=get_settings().plagiarism_default_top_k, ge=1, le=500),
    service: PlagiarismService = Depends(get_plagiarism_service),
) -> SimilarSubmissionsResponse:
    try:
        results = await service.get_similar_submissions(submission_id, tenant_id, top_k)
    except PersistenceError as exc:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=str(exc)) from exc
    return SimilarSubmissionsResponse(submission_id=submission_id, results=results)


@router.get("/{submission_id}/report", response_model=PlagiarismReport)
async def get_plagiarism_report(
    submission_id: str,
    tenant_id: str = Header(..., alias="X-Tenant-ID", min_length=1),
    top_k: int = Query(default=get_settings().plagiarism_default_top_k, ge=1, le=500),
    service: PlagiarismService = Depends(get_plagiarism_service),
) -> PlagiarismReport:
    try:
        return await service.get_plagiarism_report(submission_id, tenant_id, top_k)
    except SubmissionNotFoundError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc
    except PersistenceError as exc:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=str(exc)) from exc

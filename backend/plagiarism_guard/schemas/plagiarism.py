"""Schemas for submission events and similarity results.

Classes:
    SubmissionCreatedEvent: Validated payload of a "submission created" bus message.
    SimilarSubmission: One ranked neighbour returned by a similarity search.
    SimilarSubmissionsResponse: Payload returned by the similar-submissions endpoint.
    PlagiarismReport: Latest detection outcome of one submission plus its current neighbours.
"""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field


class SubmissionCreatedEvent(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True, str_strip_whitespace=True)

    submission_id: str = Field(alias="submissionId", min_length=1)
    tenant_id: str = Field(alias="tenantId", min_length=1)
    course_id: str = Field(alias="courseId", min_length=1)


class SimilarSubmission(BaseModel):
    submission_id: str
    user_id: str
    similarity: float
    submitted_at: datetime


class SimilarSubmissionsResponse(BaseModel):
    submission_id: str
    results: list[SimilarSubmission] = Field(default_factory=list)


class PlagiarismReport(BaseModel):
    submission_id: str
    is_flagged: bool
    highest_similarity: float
    checked_at: datetime
    similar_submissions: list[SimilarSubmission] = Field(default_factory=list)

"""Search schemas."""

from datetime import datetime
from typing import Literal, Optional
from uuid import UUID
from pydantic import BaseModel, Field

from api.schemas.candidates import CandidateResponse
from database.models.candidates import CandidateStage

SearchType = Literal["candidates", "jobs", "all"]


class SearchResult(BaseModel):
    id: UUID
    name: str
    email: Optional[str] = None
    type: Literal["candidate", "job"]
    subtitle: Optional[str] = None


class SearchFacets(BaseModel):
    by_job: dict[str, int] = Field(default_factory=dict)
    by_stage: dict[str, int] = Field(default_factory=dict)
    by_rating: dict[str, int] = Field(default_factory=dict)


class CandidateSearchFilters(BaseModel):
    query: Optional[str] = None
    job_id: Optional[UUID] = None
    stages: Optional[list[CandidateStage]] = None
    rating_min: Optional[int] = Field(None, ge=0, le=5)
    rating_max: Optional[int] = Field(None, ge=0, le=5)
    date_from: Optional[datetime] = None
    date_to: Optional[datetime] = None


class CandidateSearchResponse(BaseModel):
    candidates: list[CandidateResponse]
    total: int
    facets: SearchFacets


class AdvancedSearchRequest(BaseModel):
    """All given criteria must hold."""

    skills: Optional[list[str]] = None
    location: Optional[str] = None
    experience_min: Optional[int] = Field(None, ge=0)
    experience_max: Optional[int] = Field(None, ge=0)
    companies: Optional[list[str]] = None
    titles: Optional[list[str]] = None


class SuggestionsResponse(BaseModel):
    suggestions: list[str]

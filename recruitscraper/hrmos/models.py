from __future__ import annotations
from typing import List, Literal, Optional
from pydantic import BaseModel, ConfigDict, Field, field_validator

UNKNOWN_TITLE = 'タイトル不明'
UNKNOWN_NAME = '氏名不明'
NOT_RETRIEVED = '取得できませんでした'


class Credentials(BaseModel):
    email: str
    password: str = Field(repr=False)


class _Record(BaseModel):
    # JSON payloads keep the camelCase field names the UI consumes
    model_config = ConfigDict(populate_by_name=True)

    @field_validator("*", mode="before")
    @classmethod
    def none_to_empty(cls, v):
        if v is None:
            return ""
        return v


class JobListing(_Record):
    title: str = UNKNOWN_TITLE
    url: str
    status: Literal['OPEN', 'CLOSE'] = 'OPEN'
    last_updated: str = Field("", alias='lastUpdated')
    company_id: str = Field("", alias='companyId')
    job_id: str = Field("", alias='jobId')


class JobDetail(_Record):
    title: str = ""
    description: str = ""
    requirements: str = ""
    work_location: str = Field("", alias='workLocation')
    employment_type: str = Field("", alias='employmentType')
    salary: str = ""
    working_hours: str = Field("", alias='workingHours')
    holidays: str = ""
    benefits: str = ""
    last_updated: str = Field("", alias='lastUpdated')


class CandidateInfo(_Record):
    name: str = UNKNOWN_NAME
    url: str = ""
    job_category: str = Field("", alias='jobCategory')
    job_description: str = Field("", alias='jobDescription')
    requirements: str = ""
    last_updated: str = Field("", alias='lastUpdated')
    company_id: str = Field("", alias='companyId')
    job_id: str = Field("", alias='jobId')
    candidate_id: str = Field("", alias='candidateId')
    candidate_detail_id: str = Field("", alias='candidateDetailId')


class ProgressSnapshot(BaseModel):
    """State pushed to the UI progress view."""
    model_config = ConfigDict(populate_by_name=True)

    total_companies: int = Field(0, alias='totalCompanies')
    processed_companies: int = Field(0, alias='processedCompanies')
    total_jobs: int = Field(0, alias='totalJobs')
    processed_jobs: int = Field(0, alias='processedJobs')
    total_candidates: int = Field(0, alias='totalCandidates')
    processed_candidates: int = Field(0, alias='processedCandidates')
    current_company: str = Field("", alias='currentCompany')
    current_job: str = Field("", alias='currentJob')
    current_candidate: str = Field("", alias='currentCandidate')
    status: str = '準備中'
    logs: List[str] = Field(default_factory=list)

    @property
    def percent(self) -> float:
        total = self.total_companies + self.total_jobs + self.total_candidates
        if total == 0:
            return 0.0
        done = self.processed_companies + self.processed_jobs + self.processed_candidates
        return done / total * 100.0


class ScrapeResult(BaseModel):
    success: bool
    message: str
    data: List[dict] = Field(default_factory=list)
    count: Optional[int] = None
    error: Optional[str] = None
    csv_path: Optional[str] = Field(None, alias='filePath')

    model_config = ConfigDict(populate_by_name=True)

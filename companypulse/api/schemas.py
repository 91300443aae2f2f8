"""Pydantic models shared by the reconciliation pipeline and the API."""

from pydantic import BaseModel, field_validator
from typing import Any, Dict, List, Literal, Optional

RemoteType = Literal["remote", "hybrid", "onsite"]
SeniorityLevel = Literal["intern", "entry", "mid", "senior", "staff", "executive"]
RunStatus = Literal["completed", "failed"]


class ExternalRecord(BaseModel):
    """Record as received from a source, before reconciliation.

    compensation, secondary_locations and payload are opaque structured
    data; they are passed through to storage untouched.
    """
    external_id: Optional[str] = None
    title: Optional[str] = None
    location: Optional[str] = None
    description_plain: Optional[str] = None
    description_html: Optional[str] = None
    department: Optional[str] = None
    team: Optional[str] = None
    employment_type: Optional[str] = None
    is_remote: Optional[bool] = None
    url: Optional[str] = None
    apply_url: Optional[str] = None
    published_at: Optional[str] = None
    compensation: Optional[Any] = None
    secondary_locations: Optional[Any] = None
    payload: Optional[Any] = None
    snippet: Optional[str] = None
    score: Optional[float] = None

    @field_validator("external_id", mode="before")
    @classmethod
    def coerce_external_id(cls, value):
        # Scalar ids become strings; anything else maps to None and is
        # counted as skipped by the planner.
        if isinstance(value, bool):
            return None
        if isinstance(value, (str, int, float)):
            return str(value)
        return None

    @property
    def change_content(self) -> Optional[str]:
        """Text used for change detection: plain description, else HTML."""
        if self.description_plain is not None:
            return self.description_plain
        return self.description_html


class NormalizedFields(BaseModel):
    remote_type: RemoteType
    seniority_level: SeniorityLevel


class PersistedRecordSummary(BaseModel):
    """The slice of a stored row the planner needs."""
    id: str
    external_id: str
    fingerprint: Optional[str] = None
    removed_at: Optional[str] = None

    @property
    def is_active(self) -> bool:
        return self.removed_at is None


class CreateEntry(BaseModel):
    external_id: str
    record: ExternalRecord
    normalized: NormalizedFields
    fingerprint: str


class UpdateEntry(BaseModel):
    id: str
    external_id: str
    record: ExternalRecord
    normalized: NormalizedFields
    fingerprint: str
    changed: bool
    reactivated: bool = False  # row had removed_at set before this cycle


class RemoveEntry(BaseModel):
    id: str
    external_id: str


class ReconciliationPlan(BaseModel):
    now: str
    to_create: List[CreateEntry] = []
    to_update: List[UpdateEntry] = []
    to_remove: List[RemoveEntry] = []
    skipped: int = 0

    @property
    def changed_count(self) -> int:
        return sum(1 for entry in self.to_update if entry.changed)


class ReconcileCounts(BaseModel):
    """Externally visible result of one reconciliation cycle."""
    found: int = 0
    created: int = 0
    updated: int = 0
    removed: int = 0
    skipped: int = 0


class RunRecord(BaseModel):
    """Audit row for one reconciliation cycle."""
    id: Optional[int] = None
    company_id: str
    source: str
    status: RunStatus
    found_count: int = 0
    new_count: int = 0
    updated_count: int = 0
    removed_count: int = 0
    skipped_count: int = 0
    error_message: Optional[str] = None
    started_at: str
    completed_at: str


class CompanyCreate(BaseModel):
    name: str
    slug: str
    ashby_board_name: Optional[str] = None


class Company(CompanyCreate):
    id: str
    created_at: str


class SyncStatusResponse(BaseModel):
    """Response for sync job status."""
    job_id: str
    key: Optional[str] = None
    status: str  # queued, running, completed, failed
    created_at: str
    completed_at: Optional[str] = None
    error: Optional[str] = None
    result: Optional[dict] = None


class HealthMetrics(BaseModel):
    company_id: str
    metric_date: str
    total_active_jobs: int
    jobs_added_7d: int
    jobs_removed_7d: int
    jobs_added_30d: int
    jobs_removed_30d: int
    job_velocity_score: float
    department_diversity_score: int
    location_diversity_score: int
    health_score: float
    growth_indicator: Literal["expanding", "stable", "contracting"]
    seniority_distribution: Dict[str, int] = {}
    remote_distribution: Dict[str, int] = {}
    department_distribution: Dict[str, int] = {}

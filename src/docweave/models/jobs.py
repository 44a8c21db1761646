"""Crawler job data models"""

from datetime import datetime
from enum import Enum

from pydantic import BaseModel, Field

from .content import ContentFormat


class JobStatus(str, Enum):
    """Crawler job lifecycle states"""

    PENDING = "pending"
    RUNNING = "running"
    COMPLETED = "completed"
    FAILED = "failed"


class CrawlerJob(BaseModel):
    """One scheduled fetch of a configured source URL"""

    id: str
    source: str
    url: str
    format: ContentFormat | None = None
    priority: int = 1
    scheduled_at: datetime
    status: JobStatus = JobStatus.PENDING
    last_run: datetime | None = None
    last_success: datetime | None = None
    next_run: datetime | None = None
    retry_count: int = 0
    last_error: str | None = None


class SchedulerStats(BaseModel):
    """Aggregate scheduler state"""

    total_jobs: int = 0
    pending_jobs: int = 0
    running_jobs: int = 0
    completed_jobs: int = 0
    failed_jobs: int = 0
    last_run_time: datetime | None = None
    next_run_time: datetime | None = None
    average_run_time: float = 0.0  # seconds, over the recent run window
    is_running: bool = False
    recent_run_durations: list[float] = Field(default_factory=list)

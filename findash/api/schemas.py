from pydantic import BaseModel, Field
from typing import Any, Optional, Literal

class SnapshotResponse(BaseModel):
    data: list[dict[str, Any]]
    lastUpdate: Optional[str] = None

class Commentary(BaseModel):
    summary: str
    risk: str
    opportunity: str
    changes: list[str] = Field(default_factory=list)

class CommentaryResponse(BaseModel):
    commentary: Commentary
    lastUpdate: Optional[str] = None

class AllocationBucket(BaseModel):
    bucket: str
    market_value: float
    weight_pct: float

class Allocation(BaseModel):
    status: Literal['ok', 'insufficient_data']
    total_market_value: float
    buckets: list[AllocationBucket]

class AllocationResponse(BaseModel):
    allocation: Allocation
    lastUpdate: Optional[str] = None

class BatchStatus(BaseModel):
    domain: str
    status: Literal['committed', 'skipped', 'failed']
    timestamp: str
    source: Optional[str] = None
    inserted: int = 0
    error: Optional[str] = None
    elapsed_sec: float = 0.0

class RefreshResponse(BaseModel):
    run_id: str
    trigger: str
    status: Literal['succeeded', 'partial', 'failed', 'skipped']
    ok: bool
    started_at_utc: str
    finished_at_utc: str
    batches: list[BatchStatus]
    lastUpdate: Optional[str] = None

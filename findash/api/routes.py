import re
from datetime import datetime
from fastapi import APIRouter, Depends, HTTPException, Query, Request
from .schemas import SnapshotResponse, CommentaryResponse, AllocationResponse, RefreshResponse
from ..config import settings
from ..errors import StoreError, ValidationError
from ..metrics.allocation import allocation_by_bucket
from ..metrics.commentary import generate_commentary
from ..pipeline.orchestrator import Refresher
from ..store.observations import ObservationStore
from ..utils import today_local_iso

router = APIRouter()

def get_store(request: Request) -> ObservationStore:
    store = getattr(request.app.state, "store", None)
    if store is None:
        raise HTTPException(503, 'store not initialised')
    return store

def get_refresher(request: Request) -> Refresher:
    refresher = getattr(request.app.state, "refresher", None)
    if refresher is None:
        raise HTTPException(503, 'refresher not initialised')
    return refresher

def _snapshot(store: ObservationStore, domain: str, filters: dict | None = None) -> dict:
    try:
        data = store.snapshot(domain, filters)
        return {'data': data, 'lastUpdate': store.last_update()}
    except ValidationError as e:
        raise HTTPException(400, str(e))
    except StoreError as e:
        raise HTTPException(503, f'db_error: {e}')

@router.get(
    '/health',
    summary="Health check",
    description="Returns DB connectivity, the freshest timestamp and the last refresh outcome.",
    tags=["Health"],
)
def health(store: ObservationStore = Depends(get_store), refresher: Refresher = Depends(get_refresher)):
    try:
        last_update = store.last_update()
    except StoreError as e:
        raise HTTPException(503, f'db_error: {e}')
    last = refresher.last_result
    last_refresh = None
    if last:
        last_refresh = {k: last[k] for k in ('run_id', 'status', 'started_at_utc', 'finished_at_utc')}
    return {'ok': True, 'db': 'ok', 'last_update': last_update, 'last_refresh': last_refresh, 'refreshing': refresher.running}

@router.get(
    '/api/markets',
    response_model=SnapshotResponse,
    summary="Latest market quotes",
    description="Latest quote per symbol. Optional category filter (equities|rates|commodities|fx|crypto).",
    tags=["Snapshots"],
)
def markets(category: str | None = None, store: ObservationStore = Depends(get_store)):
    return _snapshot(store, 'markets', {'category': category} if category else None)

@router.get(
    '/api/economics',
    response_model=SnapshotResponse,
    summary="Latest economic releases",
    description="Latest release per (indicator, country).",
    tags=["Snapshots"],
)
def economics(store: ObservationStore = Depends(get_store)):
    return _snapshot(store, 'economics')

@router.get(
    '/api/pe',
    response_model=SnapshotResponse,
    summary="Latest private equity metrics",
    description="Latest value per (metric, strategy, region).",
    tags=["Snapshots"],
)
def pe_metrics(store: ObservationStore = Depends(get_store)):
    return _snapshot(store, 'pe_metrics')

@router.get(
    '/api/portfolio',
    response_model=SnapshotResponse,
    summary="Current portfolio positions",
    description="One row per position id. Optional bucket filter.",
    tags=["Snapshots"],
)
def portfolio(bucket: str | None = None, store: ObservationStore = Depends(get_store)):
    return _snapshot(store, 'positions', {'bucket': bucket} if bucket else None)

@router.get(
    '/api/risk',
    response_model=SnapshotResponse,
    summary="Risk measures for a date",
    description="All VaR/stress rows computed for as_of_date (defaults to today in LOCAL_TZ).",
    tags=["Risk"],
)
def risk(as_of: str | None = Query(default=None, alias="date"), store: ObservationStore = Depends(get_store)):
    as_of = as_of or today_local_iso(settings.local_tz)
    # stored as_of_date is zero-padded YYYY-MM-DD; compact or unpadded forms never match
    try:
        if not re.fullmatch(r"\d{4}-\d{2}-\d{2}", as_of):
            raise ValueError(as_of)
        datetime.strptime(as_of, "%Y-%m-%d")
    except ValueError:
        raise HTTPException(400, 'date must be YYYY-MM-DD')
    try:
        data = store.query('risk_measures', {'as_of_date': as_of})
        return {'data': data, 'lastUpdate': store.last_update()}
    except StoreError as e:
        raise HTTPException(503, f'db_error: {e}')

@router.get(
    '/api/commentary',
    response_model=CommentaryResponse,
    summary="Market commentary",
    description="Narrative built from the latest market quotes.",
    tags=["Derived"],
)
def commentary(store: ObservationStore = Depends(get_store)):
    snap = _snapshot(store, 'markets')
    return {'commentary': generate_commentary(snap['data']), 'lastUpdate': snap['lastUpdate']}

@router.get(
    '/api/allocation',
    response_model=AllocationResponse,
    summary="Allocation by liquidity bucket",
    description="Market value and weight per bucket from current positions.",
    tags=["Derived"],
)
def allocation(store: ObservationStore = Depends(get_store)):
    snap = _snapshot(store, 'positions')
    return {'allocation': allocation_by_bucket(snap['data']), 'lastUpdate': snap['lastUpdate']}

@router.post(
    '/api/refresh',
    response_model=RefreshResponse,
    summary="Refresh now",
    description="Runs one ingestion cycle synchronously and returns per-domain outcomes plus the new lastUpdate.",
    tags=["Refresh"],
)
def refresh(refresher: Refresher = Depends(get_refresher)):
    return refresher.run(trigger="manual")

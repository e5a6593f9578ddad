from contextlib import asynccontextmanager
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from .logging import setup_logging
from .api.routes import router as api_router
from .config import settings
from .pipeline.orchestrator import Refresher
from .pipeline.scheduler import start_scheduler, stop_scheduler
from .store.observations import ObservationStore

def create_app(
    store: ObservationStore | None = None,
    refresher: Refresher | None = None,
    start_jobs: bool | None = None,
    refresh_on_startup: bool | None = None,
) -> FastAPI:
    if start_jobs is None:
        start_jobs = bool(settings.scheduler_enabled)
    if refresh_on_startup is None:
        refresh_on_startup = bool(settings.refresh_on_startup)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        owns_store = app.state.store is None
        if owns_store:
            app.state.store = ObservationStore.open(settings.db_path)
        if app.state.refresher is None:
            app.state.refresher = Refresher(app.state.store)
        sched = None
        if start_jobs:
            # startup refresh runs as a one-off job on the scheduler thread
            sched = start_scheduler(app.state.refresher, run_now=refresh_on_startup)
        elif refresh_on_startup:
            app.state.refresher.run_safely(trigger="startup")
        try:
            yield
        finally:
            stop_scheduler(sched)
            if owns_store:
                app.state.store.close()
                app.state.store = None

    app = FastAPI(title="findash", lifespan=lifespan)
    app.state.store = store
    app.state.refresher = refresher if refresher is not None else (Refresher(store) if store is not None else None)
    origins = [o.strip() for o in settings.cors_origins.split(",") if o.strip()]
    app.add_middleware(CORSMiddleware, allow_origins=origins, allow_methods=["GET", "POST"], allow_headers=["*"])
    app.include_router(api_router)
    return app

setup_logging()
app = create_app()

"""
FastAPI routes for the registration date search.

Thin routes that delegate to the search coordinator.
"""

from typing import Optional

from fastapi import APIRouter, HTTPException, Query
import structlog

from api.schemas import (
    ClearEventsResponse,
    LogEventResponse,
    SearchStartRequest,
    SearchStatusResponse,
    StopResponse
)
from config import settings
from search.coordinator import SearchCoordinator
from search.exceptions import ConfigurationError, SearchAlreadyRunning

logger = structlog.get_logger()

router = APIRouter()

# Initialize services
search_coordinator = SearchCoordinator()


def get_coordinator() -> SearchCoordinator:
    """Coordinator used by the routes (module-level so tests can swap it)."""
    return search_coordinator


# ============================================================================
# Search API Routes
# ============================================================================

@router.post("/api/search/start", response_model=SearchStatusResponse)
async def start_search(request: SearchStartRequest):
    """Start a parallel date search for a registration number."""
    coordinator = get_coordinator()

    try:
        handle = coordinator.start(
            request.identifier,
            request.start_date,
            request.end_date,
            request.threads
        )
    except SearchAlreadyRunning as e:
        raise HTTPException(status_code=409, detail=str(e))
    except ConfigurationError as e:
        raise HTTPException(status_code=400, detail=str(e))

    return SearchStatusResponse.from_snapshot(handle.snapshot())


@router.post("/api/search/stop", response_model=StopResponse)
async def stop_search():
    """Ask all workers to stop after their current request."""
    coordinator = get_coordinator()
    stopped = coordinator.request_stop()

    return StopResponse(
        stopped=stopped,
        status=SearchStatusResponse.from_snapshot(coordinator.snapshot())
    )


@router.get("/api/search/status", response_model=SearchStatusResponse)
async def get_search_status():
    """Get progress and result of the current (or last) search."""
    return SearchStatusResponse.from_snapshot(get_coordinator().snapshot())


@router.get("/api/search/events", response_model=list[LogEventResponse])
async def get_search_events(limit: Optional[int] = Query(default=None, ge=1)):
    """Get retained search events, oldest first."""
    events = get_coordinator().events(limit)
    return [LogEventResponse.from_event(event) for event in events]


@router.delete("/api/search/events", response_model=ClearEventsResponse)
async def clear_search_events():
    """Clear the event console."""
    cleared = get_coordinator().clear_events()
    logger.info("Cleared search events", cleared=cleared)
    return ClearEventsResponse(cleared=cleared)


@router.get("/api/status")
async def get_status():
    """Get application status."""
    return {
        "app": settings.APP_NAME,
        "version": settings.APP_VERSION,
        "service_url": settings.SERVICE_URL,
        "results_dir": str(settings.RESULTS_DIR),
        "max_threads": settings.MAX_THREADS
    }

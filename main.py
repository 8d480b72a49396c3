import logging
from contextlib import asynccontextmanager
from datetime import date, datetime
from typing import List, Optional

from fastapi import Depends, FastAPI, HTTPException, Query, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from dream_journal import __version__
from dream_journal.config import get_settings
from dream_journal.date_filters import DateFilterType, DateRange
from dream_journal.exceptions import DreamNotFoundError, DreamValidationError, StorageError
from dream_journal.moon import get_moon_phase
from dream_journal.orchestrator import DreamJournalService
from dream_journal.schemas import (
    CalendarDay,
    DreamRecord,
    DreamRequest,
    MoonInsights,
    MoonPhase,
    ReflectionNote,
    ReflectionNoteUpdate,
    StreakSummary,
    TrendsReport,
)
from dream_journal.validation import allowed_emotions, describe_schema_error

settings = get_settings()

logging.basicConfig(
    level=settings.log_level.upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger("dream_journal.api")

# Global service instance
service: Optional[DreamJournalService] = None


@asynccontextmanager
async def lifespan(app: FastAPI):
    global service
    service = DreamJournalService.from_settings(settings)
    yield
    service = None


# Initialize FastAPI app
app = FastAPI(
    title="Dream Journal Analysis API",
    description="Turns dream fragments into a narrative and psychological interpretation",
    version=__version__,
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# Dependency to get the service
def get_service() -> DreamJournalService:
    if service is None:
        raise HTTPException(status_code=500, detail="Service not initialized")
    return service


@app.exception_handler(DreamValidationError)
async def dream_validation_error_handler(request: Request, exc: DreamValidationError):
    return JSONResponse(status_code=400, content={"message": exc.message})


@app.exception_handler(RequestValidationError)
async def request_validation_error_handler(request: Request, exc: RequestValidationError):
    errors = exc.errors()
    message = describe_schema_error(exc) if errors else "Invalid request"
    return JSONResponse(status_code=400, content={"message": message})


@app.exception_handler(DreamNotFoundError)
async def dream_not_found_handler(request: Request, exc: DreamNotFoundError):
    return JSONResponse(status_code=404, content={"message": "Dream not found"})


@app.exception_handler(Exception)
async def unexpected_error_handler(request: Request, exc: Exception):
    logger.error("Unhandled error on %s %s", request.method, request.url.path, exc_info=exc)
    return JSONResponse(
        status_code=500,
        content={"message": "Something went wrong", "error": str(exc)},
    )


# Routes
@app.get("/")
async def root():
    return {"message": "Dream Journal Analysis API", "version": __version__}


@app.get("/health")
async def health_check():
    return {"status": "healthy", "timestamp": datetime.now().isoformat()}


@app.get("/emotions", response_model=List[str])
async def get_emotions():
    """Get list of available primary emotions."""
    return allowed_emotions()


@app.post("/api/dreams/analyze", response_model=DreamRecord)
async def analyze_dream(
    request: DreamRequest,
    journal_service: DreamJournalService = Depends(get_service),
):
    """Validate, analyze and store a dream."""
    try:
        return await journal_service.submit_dream(request)
    except StorageError as e:
        logger.error("Error analyzing dream (cues length %d): %s", len(request.dream_cues), e)
        return JSONResponse(
            status_code=500,
            content={"message": "Failed to analyze dream", "error": str(e)},
        )


@app.get("/api/dreams", response_model=List[DreamRecord])
async def list_dreams(
    filter_type: DateFilterType = Query(default=DateFilterType.ALL, alias="filter"),
    start: Optional[date] = None,
    end: Optional[date] = None,
    season: Optional[str] = None,
    journal_service: DreamJournalService = Depends(get_service),
):
    """All dreams, most recent first, optionally narrowed by date or season."""
    custom_range = None
    if filter_type == DateFilterType.CUSTOM:
        if start is None or end is None:
            raise DreamValidationError("A custom filter needs both a start and an end date")
        custom_range = DateRange(
            datetime.combine(start, datetime.min.time()),
            datetime.combine(end, datetime.max.time()),
        )
    return await journal_service.filtered_dreams(filter_type, custom_range, season)


@app.get("/api/dreams/anniversary", response_model=List[DreamRecord])
async def anniversary_dreams(journal_service: DreamJournalService = Depends(get_service)):
    """Dreams recorded on this day last year."""
    return await journal_service.anniversary_dreams()


@app.get("/api/dreams/{dream_id}", response_model=DreamRecord)
async def get_dream(dream_id: int, journal_service: DreamJournalService = Depends(get_service)):
    return await journal_service.get_dream(dream_id)


@app.get("/api/dreams/{dream_id}/notes", response_model=Optional[ReflectionNote])
async def get_reflection_note(dream_id: int, journal_service: DreamJournalService = Depends(get_service)):
    return await journal_service.get_note(dream_id)


@app.put("/api/dreams/{dream_id}/notes", response_model=ReflectionNote)
async def save_reflection_note(
    dream_id: int,
    note: ReflectionNoteUpdate,
    journal_service: DreamJournalService = Depends(get_service),
):
    return await journal_service.save_note(dream_id, note.text)


@app.get("/api/analytics/streak", response_model=StreakSummary)
async def get_streak(journal_service: DreamJournalService = Depends(get_service)):
    return await journal_service.streak()


@app.get("/api/analytics/trends", response_model=TrendsReport)
async def get_trends(journal_service: DreamJournalService = Depends(get_service)):
    return await journal_service.trends()


@app.get("/api/analytics/calendar", response_model=List[CalendarDay])
async def get_calendar(
    year: Optional[int] = None,
    month: Optional[int] = Query(default=None, ge=1, le=12),
    journal_service: DreamJournalService = Depends(get_service),
):
    return await journal_service.calendar(year, month)


@app.get("/api/analytics/moon", response_model=MoonInsights)
async def get_moon_insights(journal_service: DreamJournalService = Depends(get_service)):
    return await journal_service.moon_insights()


@app.get("/api/moon", response_model=MoonPhase)
async def moon_phase(on: Optional[date] = Query(default=None, alias="date")):
    """Moon phase for a calendar date, today by default."""
    return get_moon_phase(on or date.today())


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "main:app",
        host=settings.host,
        port=settings.port,
        reload=True,
        log_level=settings.log_level,
    )

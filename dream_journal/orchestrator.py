import logging
import random
from datetime import date
from typing import Any, List, Mapping, Optional, Union

from . import analytics, date_filters, moon
from .config import Settings
from .exceptions import (
    DreamNotFoundError,
    DreamValidationError,
    GenerationError,
    NonsensicalContentError,
    StorageError,
)
from .fallback import FallbackAnalyzer
from .gateway import ChatCompletionClient, GenerationGateway
from .schemas import (
    CalendarDay,
    DreamAnalysis,
    DreamRecord,
    DreamRequest,
    MoonInsights,
    ReflectionNote,
    StreakSummary,
    TrendsReport,
)
from .storage import DreamStore, ReflectionNotes
from .validation import parse_dream_request, validate_dream_request

logger = logging.getLogger(__name__)

RawDreamInput = Union[DreamRequest, Mapping[str, Any]]


class AnalysisOrchestrator:
    """
    Turns one submission into one stored DreamRecord.

    Validating -> Rejected, or Validating -> Generating -> Succeeded, with a
    detour through FallingBack whenever the remote generator fails. Only a
    validation problem (including the generator calling the dream
    nonsensical) reaches the caller.
    """

    def __init__(
        self,
        store: DreamStore,
        gateway: Optional[GenerationGateway] = None,
        fallback: Optional[FallbackAnalyzer] = None,
    ):
        self.store = store
        self.gateway = gateway
        self.fallback = fallback or FallbackAnalyzer()

    async def process(self, raw: RawDreamInput) -> DreamRecord:
        logger.debug("Submission state: validating")
        try:
            request = parse_dream_request(raw)
            validate_dream_request(request)
        except DreamValidationError as e:
            logger.info("Submission rejected: %s", e.message)
            raise

        analysis = await self.analyze(request)

        try:
            record = await self.store.append(request, analysis)
        except Exception as e:
            logger.error("Failed to store dream: %s", e)
            raise StorageError(f"Failed to save dream: {e}") from e

        logger.debug("Submission state: succeeded (dream %s)", record.id)
        return record

    async def analyze(self, request: DreamRequest) -> DreamAnalysis:
        if self.gateway is None:
            logger.info("Generation disabled, using local dream analyzer")
            return self.fallback.analyze_locally(request)

        logger.debug("Submission state: generating")
        try:
            return await self.gateway.generate(request)
        except NonsensicalContentError:
            raise
        except GenerationError as e:
            logger.warning("Generation failed (%s), using local dream analyzer instead: %s", e.kind, e.message)
        except Exception:
            logger.exception("Unexpected generation error, using local dream analyzer instead")

        logger.debug("Submission state: falling back")
        return self.fallback.analyze_locally(request)


class DreamJournalService:
    """Everything the API needs: submissions, history, analytics and notes."""

    def __init__(
        self,
        store: Optional[DreamStore] = None,
        gateway: Optional[GenerationGateway] = None,
        fallback: Optional[FallbackAnalyzer] = None,
        notes: Optional[ReflectionNotes] = None,
    ):
        self.store = store or DreamStore()
        self.notes = notes or ReflectionNotes()
        self.orchestrator = AnalysisOrchestrator(self.store, gateway, fallback)

    @classmethod
    def from_settings(cls, settings: Settings, seed: Optional[int] = None) -> "DreamJournalService":
        gateway = None
        if settings.generation_enabled:
            client = ChatCompletionClient(
                api_key=settings.openai_api_key,
                model_name=settings.model_name,
                temperature=settings.temperature,
                max_tokens=settings.max_tokens,
                base_url=settings.base_url,
            )
            gateway = GenerationGateway(client, timeout=settings.generation_timeout)
            logger.info("Remote generation enabled with model %s", settings.model_name)
        else:
            logger.info("No OPENAI_API_KEY configured, dreams will be analyzed locally")
        return cls(gateway=gateway, fallback=FallbackAnalyzer(random.Random(seed)))

    async def submit_dream(self, raw: RawDreamInput) -> DreamRecord:
        return await self.orchestrator.process(raw)

    async def list_dreams(self) -> List[DreamRecord]:
        return await self.store.all()

    async def get_dream(self, dream_id: int) -> DreamRecord:
        record = await self.store.get(dream_id)
        if record is None:
            raise DreamNotFoundError(dream_id)
        return record

    async def filtered_dreams(
        self,
        filter_type: date_filters.DateFilterType = date_filters.DateFilterType.ALL,
        custom_range: Optional[date_filters.DateRange] = None,
        season: Optional[str] = None,
    ) -> List[DreamRecord]:
        records = date_filters.filter_dreams_by_date(await self.store.all(), filter_type, custom_range)
        if season:
            records = date_filters.filter_dreams_by_season(records, season)
        return records

    async def anniversary_dreams(self, today: Optional[date] = None) -> List[DreamRecord]:
        return date_filters.get_anniversary_dreams(await self.store.all(), today)

    async def streak(self, today: Optional[date] = None) -> StreakSummary:
        data = analytics.calculate_streak(await self.store.all(), today)
        return StreakSummary(
            streak=data,
            badge=analytics.get_streak_badge(data.current_streak),
            message=analytics.get_streak_message(data),
        )

    async def trends(self) -> TrendsReport:
        return analytics.build_trends(await self.store.all())

    async def calendar(self, year: Optional[int] = None, month: Optional[int] = None) -> List[CalendarDay]:
        if (year is None) != (month is None):
            raise DreamValidationError("Please provide both a year and a month, or neither")
        records = await self.store.all()
        if year is not None:
            return analytics.calendar_month(records, year, month)
        return analytics.build_calendar(records)

    async def moon_insights(self) -> MoonInsights:
        return moon.get_moon_insights(await self.store.all())

    async def get_note(self, dream_id: int) -> Optional[ReflectionNote]:
        await self.get_dream(dream_id)
        return await self.notes.get(dream_id)

    async def save_note(self, dream_id: int, text: str) -> ReflectionNote:
        await self.get_dream(dream_id)
        return await self.notes.put(dream_id, text)

"""Long-lived application collaborators, built once at startup."""

import logging
from dataclasses import dataclass

from sqlalchemy.ext.asyncio import AsyncEngine

from aida_bot.config import Settings
from aida_bot.core.dates import DateResolver
from aida_bot.core.llm import GeminiClient
from aida_bot.core.orchestrator import ConversationOrchestrator
from aida_bot.core.tools import ToolRegistry
from aida_bot.db.session import create_engine, create_session_maker
from aida_bot.services.calendar import GoogleCalendarClient, load_calendar_client
from aida_bot.services.history import HistoryStore
from aida_bot.services.onboarding import CalendarBooker

logger = logging.getLogger(__name__)


@dataclass
class AppContext:
    """Everything a request handler needs, owned by the application lifespan."""

    settings: Settings
    engine: AsyncEngine
    history: HistoryStore
    llm: GeminiClient
    calendar: GoogleCalendarClient | None
    orchestrator: ConversationOrchestrator

    async def close(self) -> None:
        """Release network clients and the connection pool."""
        await self.llm.close()
        await self.engine.dispose()


def build_context(settings: Settings, engine: AsyncEngine | None = None) -> AppContext:
    """Wire the collaborators from *settings*.

    Args:
        settings: Application settings.
        engine: Existing engine to reuse; a new one is created otherwise.

    Returns:
        The assembled context. The database is not contacted here.
    """
    engine = engine or create_engine(settings)
    history = HistoryStore(create_session_maker(engine))

    calendar = load_calendar_client(settings.google_calendar_credentials_file)
    booker = CalendarBooker(
        calendar=calendar,
        calendar_id=settings.google_calendar_id,
        resolver=DateResolver(settings.reference_timezone),
    )

    llm = GeminiClient(settings)
    orchestrator = ConversationOrchestrator(llm=llm, history=history, tools=ToolRegistry(booker))

    logger.info(
        f"Application context ready: model={llm.model}, "
        f"calendar={'configured' if calendar else 'disabled'}"
    )

    return AppContext(
        settings=settings,
        engine=engine,
        history=history,
        llm=llm,
        calendar=calendar,
        orchestrator=orchestrator,
    )

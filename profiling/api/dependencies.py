"""
API Dependencies

Provides dependency injection for API endpoints.
Manages singleton instances of core components.
"""

import logging

from profiling.config.settings import Settings, get_settings
from profiling.core.generation_coordinator import GenerationCoordinator
from profiling.core.llm_client import LLMClient
from profiling.core.proctoring_ledger import ProctoringLedger
from profiling.core.question_generator import ContentGenerator, build_content_generator
from profiling.core.report_cache import ReportCache
from profiling.core.report_generator import ReportGenerator, ReportSynthesizer
from profiling.core.session_service import SessionService
from profiling.core.session_store import SessionStore, build_session_store

logger = logging.getLogger(__name__)


# ============================================================================
# SINGLETON INSTANCES
# ============================================================================

_llm_client: LLMClient | None = None
_session_service: SessionService | None = None


def build_session_service(
    settings: Settings,
    store: SessionStore | None = None,
    generator: ContentGenerator | None = None,
    synthesizer: ReportSynthesizer | None = None,
    llm: LLMClient | None = None,
) -> SessionService:
    """Wire up a SessionService. Any collaborator may be supplied explicitly."""
    # An empty in-memory store is falsy, so compare against None explicitly
    if store is None:
        store = build_session_store(settings.session_store_backend, settings.session_store_dir)
    if generator is None:
        generator = build_content_generator(settings, llm)
    if synthesizer is None:
        synthesizer = ReportGenerator(llm if settings.llm_enabled else None, settings)

    return SessionService(
        store=store,
        coordinator=GenerationCoordinator(store, generator, settings),
        report_cache=ReportCache(store, synthesizer),
        ledger=ProctoringLedger(store, write_attempts=settings.proctoring_write_attempts),
        prewarm_report=settings.prewarm_report_on_submit,
    )


def get_llm_client() -> LLMClient | None:
    """Get the LLM client singleton, or None when no API key is configured."""
    global _llm_client

    settings = get_settings()
    if _llm_client is None and settings.llm_enabled:
        _llm_client = LLMClient(settings)
    return _llm_client


def get_session_service() -> SessionService:
    """
    Get the session service singleton.

    Lazily initializes all required components.
    """
    global _session_service

    if _session_service is None:
        settings = get_settings()
        _session_service = build_session_service(settings, llm=get_llm_client())
        logger.info(
            f"Session service ready (store: {settings.session_store_backend}, "
            f"llm: {'enabled' if settings.llm_enabled else 'disabled'})"
        )

    return _session_service


async def cleanup():
    """Cleanup resources on shutdown."""
    global _session_service, _llm_client

    if _session_service:
        await _session_service.shutdown()
        _session_service = None

    if _llm_client:
        await _llm_client.close()
        _llm_client = None

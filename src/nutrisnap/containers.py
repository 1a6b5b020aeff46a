"""Dependency container wiring for the application."""

from collections.abc import Awaitable, Callable
from dataclasses import dataclass

from supabase import Client, create_client

from nutrisnap.adapters.openai_analysis_client import OpenAIAnalysisClient
from nutrisnap.adapters.supabase_blob_store import SupabaseBlobStore
from nutrisnap.adapters.supabase_food_log_repository import (
    SupabaseFoodLogRepository,
)
from nutrisnap.adapters.supabase_function_analysis_client import (
    SupabaseFunctionAnalysisClient,
)
from nutrisnap.adapters.supabase_profile_repository import SupabaseProfileRepository
from nutrisnap.config import ANALYSIS_BACKENDS, Settings
from nutrisnap.errors import ConfigurationError
from nutrisnap.services.analysis import AnalysisClient
from nutrisnap.services.dashboard import DashboardService
from nutrisnap.services.ingestion import BlobStore, IngestionPipeline
from nutrisnap.services.profiles import ProfileService
from nutrisnap.services.stats import DailySummaryService


@dataclass
class AppContainer:
    """Holds application-wide dependencies."""

    settings: Settings
    blob_store: BlobStore
    ingestion_pipeline: IngestionPipeline
    summary_service: DailySummaryService
    profile_service: ProfileService
    dashboard_service: DashboardService
    close_resources: Callable[[], Awaitable[None]]


def build_container(settings: Settings | None = None) -> AppContainer:
    """Create the default dependency container."""
    resolved_settings = settings or Settings()
    supabase_client = create_client(
        resolved_settings.supabase_url, resolved_settings.supabase_service_key
    )
    blob_store = SupabaseBlobStore(
        supabase_client, bucket=resolved_settings.storage_bucket
    )
    food_log_repository = SupabaseFoodLogRepository(supabase_client)
    profile_repository = SupabaseProfileRepository(supabase_client)
    analysis_client = _build_analysis_client(resolved_settings, supabase_client)

    ingestion_pipeline = IngestionPipeline(
        blob_store=blob_store,
        analysis_client=analysis_client,
        repository=food_log_repository,
        max_image_bytes=resolved_settings.max_image_bytes,
        storage_timeout_seconds=resolved_settings.storage_timeout_seconds,
        analysis_timeout_seconds=resolved_settings.analysis_timeout_seconds,
        persistence_timeout_seconds=resolved_settings.persistence_timeout_seconds,
        retry_attempts=resolved_settings.ingestion_retry_attempts,
        retry_delay_seconds=resolved_settings.ingestion_retry_delay_seconds,
    )
    summary_service = DailySummaryService(food_log_repository)
    profile_service = ProfileService(profile_repository)
    dashboard_service = DashboardService(
        summary_service=summary_service,
        profile_service=profile_service,
        blob_store=blob_store,
    )

    async def close_resources() -> None:
        if isinstance(analysis_client, OpenAIAnalysisClient):
            await analysis_client.close()

    return AppContainer(
        settings=resolved_settings,
        blob_store=blob_store,
        ingestion_pipeline=ingestion_pipeline,
        summary_service=summary_service,
        profile_service=profile_service,
        dashboard_service=dashboard_service,
        close_resources=close_resources,
    )


def _build_analysis_client(
    settings: Settings, supabase_client: Client
) -> AnalysisClient:
    if settings.analysis_backend not in ANALYSIS_BACKENDS:
        raise ConfigurationError(
            f"Unknown analysis backend {settings.analysis_backend!r}; "
            f"expected one of {sorted(ANALYSIS_BACKENDS)}"
        )
    if settings.analysis_backend == "edge_function":
        return SupabaseFunctionAnalysisClient(
            supabase_client, function_name=settings.analysis_function_name
        )
    if not settings.openai_api_key:
        raise ConfigurationError("OPENAI_API_KEY is required for the openai backend")
    return OpenAIAnalysisClient.create(
        api_key=settings.openai_api_key,
        model=settings.openai_model,
        reasoning_effort=settings.openai_reasoning_effort,
        store=settings.openai_store,
    )

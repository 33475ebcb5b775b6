"""Dependency container wiring for the application."""

from collections.abc import Awaitable, Callable
from dataclasses import dataclass

from macro_snap.adapters.openai_estimator_client import OpenAIEstimatorClient
from macro_snap.config import Settings
from macro_snap.services.estimator import EstimatorService
from macro_snap.services.ledger import ItemLedger
from macro_snap.services.meal_session import MealSession


@dataclass
class AppContainer:
    """Holds application-wide dependencies."""

    settings: Settings
    estimator_service: EstimatorService
    meal_session: MealSession
    close_resources: Callable[[], Awaitable[None]]


def build_container(settings: Settings | None = None) -> AppContainer:
    """Create the default dependency container."""
    resolved_settings = settings or Settings()
    openai_client = OpenAIEstimatorClient.create(resolved_settings.openai_api_key)
    estimator_service = EstimatorService(
        client=openai_client,
        model=resolved_settings.openai_model,
        reasoning_effort=resolved_settings.openai_reasoning_effort,
        store=resolved_settings.openai_store,
        timeout_seconds=resolved_settings.estimator_timeout_seconds,
        retry_attempts=resolved_settings.estimator_retry_attempts,
        retry_delay_seconds=resolved_settings.estimator_retry_delay_seconds,
    )
    meal_session = MealSession(estimator=estimator_service, ledger=ItemLedger())

    async def close_resources() -> None:
        await openai_client.close()

    return AppContainer(
        settings=resolved_settings,
        estimator_service=estimator_service,
        meal_session=meal_session,
        close_resources=close_resources,
    )

"""Shared test fixtures."""

import asyncio
import json
from dataclasses import dataclass, field

import pytest

from macro_snap.config import Settings
from macro_snap.containers import AppContainer
from macro_snap.services.estimator import EstimatorClient, EstimatorService
from macro_snap.services.ledger import ItemLedger
from macro_snap.services.meal_session import MealSession

BREAKFAST_PAYLOAD: dict[str, object] = {
    "mealName": "Egg and rice breakfast",
    "items": [
        {
            "name": "Egg",
            "unit": "1 large egg",
            "quantity": 2,
            "baseProtein": 6,
            "baseCalories": 70,
        },
        {
            "name": "Rice",
            "unit": "100g",
            "quantity": 1,
            "baseProtein": 2.7,
            "baseCalories": 130,
        },
    ],
    "totalProtein": 14.7,
    "totalCalories": 270,
    "confidence": "High",
}

CORRECTED_PAYLOAD: dict[str, object] = {
    "mealName": "Corrected Meal",
    "items": [
        {
            "name": "Boiled egg",
            "unit": "1 large egg",
            "quantity": 3,
            "baseProtein": 6.3,
            "baseCalories": 78,
        }
    ],
    "totalProtein": 18.9,
    "totalCalories": 234,
    "confidence": "Medium",
}


@dataclass
class CallRecord:
    """Arguments of a single fake estimator call."""

    model: str
    reasoning_effort: str | None
    store: bool
    prompt: str
    image_data_url: str | None


@dataclass
class FakeEstimatorClient(EstimatorClient):
    """Fake estimator transport replaying canned responses in order.

    A response may be a string (returned as-is) or an exception (raised).
    The last response is reused once the queue is exhausted. When ``gate``
    is set, every call waits for it before answering.
    """

    responses: list[str | Exception] = field(
        default_factory=lambda: [json.dumps(BREAKFAST_PAYLOAD)]
    )
    calls: list[CallRecord] = field(default_factory=list)
    gate: asyncio.Event | None = None

    async def complete(  # noqa: PLR0913
        self,
        *,
        model: str,
        reasoning_effort: str | None,
        store: bool,
        prompt: str,
        image_data_url: str | None = None,
    ) -> str:
        self.calls.append(
            CallRecord(
                model=model,
                reasoning_effort=reasoning_effort,
                store=store,
                prompt=prompt,
                image_data_url=image_data_url,
            )
        )
        if self.gate is not None:
            await self.gate.wait()
        if len(self.responses) > 1:
            response = self.responses.pop(0)
        else:
            response = self.responses[0]
        if isinstance(response, Exception):
            raise response
        return response


@pytest.fixture
def settings() -> Settings:
    return Settings(openai_api_key="openai-key")


@pytest.fixture
def estimator_client() -> FakeEstimatorClient:
    return FakeEstimatorClient()


@pytest.fixture
def estimator_service(
    settings: Settings, estimator_client: FakeEstimatorClient
) -> EstimatorService:
    return EstimatorService(
        client=estimator_client,
        model=settings.openai_model,
        reasoning_effort=settings.openai_reasoning_effort,
        store=settings.openai_store,
        timeout_seconds=settings.estimator_timeout_seconds,
        retry_attempts=0,
        retry_delay_seconds=0,
    )


@pytest.fixture
def meal_session(estimator_service: EstimatorService) -> MealSession:
    return MealSession(estimator=estimator_service, ledger=ItemLedger())


@pytest.fixture
def container(
    settings: Settings,
    estimator_service: EstimatorService,
    meal_session: MealSession,
) -> AppContainer:
    async def close_resources() -> None:
        return None

    return AppContainer(
        settings=settings,
        estimator_service=estimator_service,
        meal_session=meal_session,
        close_resources=close_resources,
    )

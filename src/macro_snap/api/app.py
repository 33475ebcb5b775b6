"""FastAPI application factory."""

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from dataclasses import asdict
from typing import NoReturn
from uuid import UUID

from fastapi import FastAPI, File, Form, HTTPException, Request, UploadFile, status

from macro_snap.api.models import AddItemRequest, ItemUpdateRequest
from macro_snap.app_logging import configure_logging
from macro_snap.containers import AppContainer
from macro_snap.domain.errors import (
    MealError,
    NoInputError,
    OperationInProgressError,
)
from macro_snap.services.meal_session import MealSession


def create_app(container: AppContainer) -> FastAPI:
    """Create a FastAPI app configured with dependencies."""
    configure_logging()
    logger = logging.getLogger(__name__)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        yield
        await app.state.container.close_resources()

    app = FastAPI(lifespan=lifespan)
    app.state.container = container

    @app.get("/health")
    async def health() -> dict[str, str]:
        """Simple health check endpoint."""
        return {"status": "ok"}

    @app.get("/meal")
    async def get_meal(request: Request) -> dict[str, object]:
        """Return the current items, display values and totals."""
        return _render(_session(request))

    @app.post("/meal/analyze")
    async def analyze_meal(
        request: Request,
        image: UploadFile | None = File(default=None),
        context: str | None = Form(default=None),
    ) -> dict[str, object]:
        """Estimate a meal photo and replace the current items."""
        session = _session(request)
        image_bytes = await image.read() if image is not None else None
        mime_type = image.content_type if image is not None else None
        result = await session.analyze_image(image_bytes, mime_type, context)
        if isinstance(result, MealError):
            _raise_for(result)
        logger.info("Analyzed meal %r", result.meal_name)
        return _render(session)

    @app.post("/meal/recalculate")
    async def recalculate_meal(request: Request) -> dict[str, object]:
        """Re-estimate the edited items and replace them wholesale."""
        session = _session(request)
        result = await session.recalculate()
        if isinstance(result, MealError):
            _raise_for(result)
        return _render(session)

    @app.post("/meal/items", status_code=status.HTTP_201_CREATED)
    async def add_item(
        request: Request, payload: AddItemRequest | None = None
    ) -> dict[str, object]:
        """Add an item the estimator missed."""
        session = _session(request)
        defaults = payload or AddItemRequest()
        added = session.add_item(
            name=defaults.name,
            unit=defaults.unit,
            quantity=defaults.quantity,
            base_protein=defaults.base_protein,
            base_calories=defaults.base_calories,
        )
        if isinstance(added, MealError):
            _raise_for(added)
        return _render(session)

    @app.patch("/meal/items/{item_id}")
    async def update_item(
        item_id: UUID, payload: ItemUpdateRequest, request: Request
    ) -> dict[str, object]:
        """Update one field of an item."""
        session = _session(request)
        item = session.ledger.get(item_id)
        if item is None:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND)
        updated = session.update_item(item_id, payload.to_edit(item.unit))
        if isinstance(updated, MealError):
            _raise_for(updated)
        return _render(session)

    @app.delete("/meal/items/{item_id}")
    async def delete_item(item_id: UUID, request: Request) -> dict[str, object]:
        """Remove an item."""
        session = _session(request)
        removed = session.remove_item(item_id)
        if isinstance(removed, MealError):
            _raise_for(removed)
        if not removed:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND)
        return _render(session)

    return app


def _session(request: Request) -> MealSession:
    container: AppContainer = request.app.state.container
    return container.meal_session


def _render(session: MealSession) -> dict[str, object]:
    return asdict(session.view())


def _raise_for(error: MealError) -> NoReturn:
    """Map a session failure to an HTTP error with its message verbatim."""
    if isinstance(error, NoInputError):
        code = status.HTTP_400_BAD_REQUEST
    elif isinstance(error, OperationInProgressError):
        code = status.HTTP_409_CONFLICT
    else:
        code = status.HTTP_502_BAD_GATEWAY
    raise HTTPException(status_code=code, detail=error.message)

"""FastAPI application factory."""

import logging
from uuid import UUID

from fastapi import Depends, FastAPI, Header, HTTPException, Query, Request, status
from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse

from nutrition_ledger.api.models import (
    AddMealRequest,
    GoalsUpdate,
    MoveMealRequest,
    UpdateItemRequest,
)
from nutrition_ledger.app_logging import configure_logging
from nutrition_ledger.containers import AppContainer
from nutrition_ledger.domain.errors import (
    IncompleteProfile,
    InvalidDate,
    InvalidTimezone,
    MealNotFound,
    NutritionLedgerError,
    ProfileNotFound,
    RangeTooLarge,
    StorageError,
    StorageTimeout,
)
from nutrition_ledger.domain.meals import MealWriteResult

_logger = logging.getLogger(__name__)


def get_container(request: Request) -> AppContainer:
    """Return the container attached to the app."""
    return request.app.state.container


def require_user(x_user_id: UUID | None = Header(default=None)) -> UUID:
    """Resolve the calling user from the X-User-Id header."""
    if x_user_id is None:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED)
    return x_user_id


def create_app(container: AppContainer) -> FastAPI:  # noqa: PLR0915
    """Create a FastAPI app configured with dependencies."""
    configure_logging()
    app = FastAPI(title="Nutrition Ledger")
    app.state.container = container
    default_timezone = container.settings.default_timezone

    @app.exception_handler(NutritionLedgerError)
    async def ledger_error_handler(
        request: Request, exc: NutritionLedgerError
    ) -> JSONResponse:
        status_code, body = _error_response(exc)
        if isinstance(exc, StorageError):
            _logger.warning(
                "Storage failure while serving request",
                extra={"path": request.url.path, "error": str(exc)},
            )
        return JSONResponse(status_code=status_code, content=body)

    @app.get("/health")
    async def health() -> dict[str, str]:
        """Simple health check endpoint."""
        return {"status": "ok"}

    @app.get("/stats/daily")
    def daily_stats(
        date: str | None = None,
        tz: str | None = None,
        user_id: UUID = Depends(require_user),
        state: AppContainer = Depends(get_container),
    ) -> dict[str, object]:
        """Return the daily summary for a local date, today by default."""
        summary = state.stats_service.get_daily(
            user_id, date, tz or default_timezone
        )
        return jsonable_encoder(summary)

    @app.get("/stats/range")
    def range_stats(
        start: str = Query(alias="from"),
        end: str = Query(alias="to"),
        tz: str | None = None,
        user_id: UUID = Depends(require_user),
        state: AppContainer = Depends(get_container),
    ) -> dict[str, object]:
        """Return one summary per local day between two dates inclusive."""
        summary = state.stats_service.get_range(
            user_id, start, end, tz or default_timezone
        )
        return jsonable_encoder(summary)

    @app.get("/stats/recommended")
    def recommended_targets(
        tz: str | None = None,
        user_id: UUID = Depends(require_user),
        state: AppContainer = Depends(get_container),
    ) -> dict[str, object]:
        """Return the targets computed from the user's profile."""
        targets = state.stats_service.get_recommended(user_id, tz or default_timezone)
        return jsonable_encoder(targets)

    @app.get("/me/goals")
    def get_goals(
        user_id: UUID = Depends(require_user),
        state: AppContainer = Depends(get_container),
    ) -> dict[str, object]:
        """Return the user's biometric profile."""
        return jsonable_encoder(state.profile_service.get_profile(user_id))

    @app.put("/me/goals")
    def update_goals(
        payload: GoalsUpdate,
        user_id: UUID = Depends(require_user),
        state: AppContainer = Depends(get_container),
    ) -> dict[str, object]:
        """Apply a partial update to the user's biometric profile."""
        profile = state.profile_service.upsert_profile(user_id, payload.to_changes())
        return jsonable_encoder(profile)

    @app.get("/meals")
    def meals_for_day(
        date: str,
        user_id: UUID = Depends(require_user),
        state: AppContainer = Depends(get_container),
    ) -> dict[str, object]:
        """Return the meals logged on a local date."""
        return jsonable_encoder(state.meal_log_service.get_day(user_id, date))

    @app.post("/meals", status_code=status.HTTP_201_CREATED)
    def add_meal_items(
        payload: AddMealRequest,
        user_id: UUID = Depends(require_user),
        state: AppContainer = Depends(get_container),
    ) -> dict[str, object]:
        """Append line items to the meal for a date and slot."""
        result = state.meal_log_service.add_items(
            user_id,
            payload.date,
            payload.slot,
            [item.to_domain() for item in payload.items],
        )
        return _write_response(result)

    @app.patch("/meals/items/{item_id}")
    def update_meal_item(
        item_id: UUID,
        payload: UpdateItemRequest,
        user_id: UUID = Depends(require_user),
        state: AppContainer = Depends(get_container),
    ) -> dict[str, object]:
        """Edit a line item."""
        result = state.meal_log_service.update_item(
            user_id, item_id, payload.to_domain()
        )
        return _write_response(result)

    @app.delete("/meals/items/{item_id}")
    def delete_meal_item(
        item_id: UUID,
        user_id: UUID = Depends(require_user),
        state: AppContainer = Depends(get_container),
    ) -> dict[str, object]:
        """Delete a line item."""
        return _write_response(state.meal_log_service.delete_item(user_id, item_id))

    @app.get("/meals/{meal_id}")
    def meal_detail(
        meal_id: UUID,
        user_id: UUID = Depends(require_user),
        state: AppContainer = Depends(get_container),
    ) -> dict[str, object]:
        """Return a meal with its line items."""
        return jsonable_encoder(state.meal_log_service.get_meal(user_id, meal_id))

    @app.patch("/meals/{meal_id}")
    def move_meal(
        meal_id: UUID,
        payload: MoveMealRequest,
        user_id: UUID = Depends(require_user),
        state: AppContainer = Depends(get_container),
    ) -> dict[str, object]:
        """Move a meal to another date or slot."""
        result = state.meal_log_service.move_meal(
            user_id, meal_id, payload.date, payload.slot
        )
        return _write_response(result)

    @app.delete("/meals/{meal_id}")
    def delete_meal(
        meal_id: UUID,
        user_id: UUID = Depends(require_user),
        state: AppContainer = Depends(get_container),
    ) -> dict[str, object]:
        """Delete a meal and its line items."""
        return _write_response(state.meal_log_service.delete_meal(user_id, meal_id))

    return app


def _write_response(result: MealWriteResult) -> dict[str, object]:
    return {
        "meal_id": jsonable_encoder(result.meal_id),
        "affected_days": jsonable_encoder(result.affected_days),
        "stale_days": jsonable_encoder(result.stale_days),
        "stats_stale": result.stats_stale,
    }


def _error_response(exc: NutritionLedgerError) -> tuple[int, dict[str, object]]:
    body: dict[str, object] = {"detail": str(exc), "code": _error_code(exc)}
    if isinstance(exc, IncompleteProfile):
        body["missing"] = exc.missing
        return status.HTTP_422_UNPROCESSABLE_ENTITY, body
    if isinstance(exc, InvalidDate | RangeTooLarge):
        return status.HTTP_400_BAD_REQUEST, body
    if isinstance(exc, ProfileNotFound | MealNotFound):
        return status.HTTP_404_NOT_FOUND, body
    if isinstance(exc, StorageError):
        return status.HTTP_503_SERVICE_UNAVAILABLE, body
    return status.HTTP_500_INTERNAL_SERVER_ERROR, body


def _error_code(exc: NutritionLedgerError) -> str:
    codes: list[tuple[type[NutritionLedgerError], str]] = [
        (InvalidTimezone, "invalid_timezone"),
        (InvalidDate, "invalid_date"),
        (RangeTooLarge, "range_too_large"),
        (IncompleteProfile, "incomplete_profile"),
        (ProfileNotFound, "profile_not_found"),
        (MealNotFound, "meal_not_found"),
        (StorageTimeout, "storage_timeout"),
        (StorageError, "storage_unavailable"),
    ]
    for error_type, code in codes:
        if isinstance(exc, error_type):
            return code
    return "internal_error"

"""FastAPI application exposing user records and quota consumption."""
from __future__ import annotations

import logging
import os
from datetime import datetime
from typing import Callable, Dict, Optional

from fastapi import APIRouter, Depends, FastAPI, HTTPException, Response, status
from pydantic import BaseModel, Field, field_validator

from .config import QuotaSettings, load_quota_settings, resolve_snapshot_path
from .database import Database, resolve_database_path
from .models import User
from .quota import QuotaEngine, QuotaOutcome
from .snapshot import SecondarySnapshot, default_snapshot, load_snapshot
from .timewindow import DaytimeWindow

logger = logging.getLogger("accesslimit.api")


class UserResponse(BaseModel):
    id: str
    first_name: str
    last_name: str
    last_login_time_utc: datetime
    quota: int


class UpdateUserRequest(BaseModel):
    first_name: str = Field(..., min_length=1, max_length=100)
    last_name: str = Field(..., min_length=1, max_length=100)

    @field_validator("first_name", "last_name")
    @classmethod
    def _strip_name(cls, value: str) -> str:
        stripped = value.strip()
        if not stripped:
            raise ValueError("name must not be empty")
        return stripped


class CreateUserRequest(UpdateUserRequest):
    id: Optional[str] = Field(default=None, min_length=1, max_length=64)


def user_to_response(user: User) -> UserResponse:
    return UserResponse(
        id=user.id,
        first_name=user.first_name,
        last_name=user.last_name,
        last_login_time_utc=user.last_login_time_utc,
        quota=user.quota,
    )


def _load_snapshot(settings: QuotaSettings) -> SecondarySnapshot:
    path = resolve_snapshot_path(os.getenv("ACCESSLIMIT_SNAPSHOT_PATH"))
    if path is None:
        return default_snapshot(settings.quota_limit)
    return load_snapshot(path, quota_limit=settings.quota_limit)


def create_app(
    *,
    database: Database | None = None,
    snapshot: SecondarySnapshot | None = None,
    settings: QuotaSettings | None = None,
    clock: Optional[Callable[[], datetime]] = None,
    initialize_database: bool = False,
) -> FastAPI:
    if database is None:
        db_path = resolve_database_path(os.getenv("ACCESSLIMIT_DB_PATH"))
        database = Database(db_path)
        database.initialize()
    elif initialize_database:
        database.initialize()

    if settings is None:
        settings = load_quota_settings()

    if snapshot is None:
        snapshot = _load_snapshot(settings)

    if clock is None:
        window = DaytimeWindow(settings.daytime_start_hour, settings.daytime_end_hour)
    else:
        window = DaytimeWindow(settings.daytime_start_hour, settings.daytime_end_hour, clock)

    engine = QuotaEngine(database, snapshot, window)

    app = FastAPI(
        title="Access Limiting Service",
        description="Per-user quota tracking and consumption",
        version="1.0.0",
    )
    app.state.database = database
    app.state.engine = engine
    app.state.settings = settings

    def get_db() -> Database:
        return database

    def get_engine() -> QuotaEngine:
        return engine

    @app.get("/health")
    async def healthcheck() -> Dict[str, str]:
        return {"status": "ok"}

    router = APIRouter(prefix="/api/v1/users")

    @router.post("", response_model=UserResponse, status_code=status.HTTP_201_CREATED)
    def create_user(payload: CreateUserRequest, db: Database = Depends(get_db)) -> UserResponse:
        logger.info("Creating user: %s %s", payload.first_name, payload.last_name)
        try:
            user = db.create_user(
                payload.first_name,
                payload.last_name,
                quota=settings.quota_limit,
                user_id=payload.id,
            )
        except ValueError as exc:
            raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(exc)) from exc
        return user_to_response(user)

    # Registered before the ``/{user_id}`` routes so "quota" is not taken as an id.
    @router.get("/quota", response_model=Dict[str, int])
    def read_users_quota(quota_engine: QuotaEngine = Depends(get_engine)) -> Dict[str, int]:
        return quota_engine.get_users_quota()

    @router.get("/{user_id}", response_model=UserResponse)
    def read_user(user_id: str, db: Database = Depends(get_db)) -> UserResponse:
        logger.info("Retrieving user with ID: %s", user_id)
        user = db.get_user(user_id)
        if user is None:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found")
        return user_to_response(user)

    @router.put("/{user_id}", response_model=UserResponse)
    def update_user(
        user_id: str,
        payload: UpdateUserRequest,
        db: Database = Depends(get_db),
    ) -> UserResponse:
        logger.info("Updating user with ID: %s", user_id)
        user = db.update_user(user_id, first_name=payload.first_name, last_name=payload.last_name)
        if user is None:
            logger.warning("User with ID %s not found for update", user_id)
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found")
        return user_to_response(user)

    @router.delete("/{user_id}", status_code=status.HTTP_204_NO_CONTENT)
    def delete_user(user_id: str, db: Database = Depends(get_db)) -> Response:
        logger.info("Deleting user with ID: %s", user_id)
        db.delete_by_id(user_id)
        return Response(status_code=status.HTTP_204_NO_CONTENT)

    @router.post("/{user_id}/consume", response_model=UserResponse)
    def consume_quota(user_id: str, quota_engine: QuotaEngine = Depends(get_engine)) -> UserResponse:
        result = quota_engine.consume_quota(user_id)
        if result.outcome is QuotaOutcome.NOT_FOUND:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found")
        if result.outcome is QuotaOutcome.EXHAUSTED or result.user is None:
            raise HTTPException(status_code=status.HTTP_429_TOO_MANY_REQUESTS, detail="Quota exhausted")
        return user_to_response(result.user)

    app.include_router(router)
    return app


__all__ = ["create_app", "user_to_response"]

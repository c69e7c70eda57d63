"""FastAPI server exposing the wardrobe, outfit and feedback endpoints."""

from __future__ import annotations

import logging
from functools import lru_cache
from typing import Optional

from fastapi import Depends, FastAPI, Query, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from closet_app.app import ClosetComfortApp
from closet_app.logging_config import configure_logging, get_logger, log_event
from logic.validation import (
    FeedbackRequest,
    GarmentCreateRequest,
    GarmentDeleteRequest,
    GarmentUpdateRequest,
    RegisterOutfitRequest,
    validation_failure,
)
from models.errors import (
    ClosetError,
    DuplicateFeedback,
    InvalidRating,
    NotFound,
    PersistenceFailure,
    WeatherUnavailable,
)

configure_logging()
LOGGER = get_logger(__name__)

app = FastAPI(title="Closet Comfort", version="0.1.0")


@lru_cache(maxsize=1)
def get_closet_app() -> ClosetComfortApp:
    """Process-wide app instance; tests override this dependency."""

    return ClosetComfortApp()


def _status_for(exc: ClosetError) -> int:
    if isinstance(exc, NotFound):
        return 404
    if isinstance(exc, DuplicateFeedback):
        return 409
    if isinstance(exc, InvalidRating):
        return 422
    if isinstance(exc, (PersistenceFailure, WeatherUnavailable)):
        return 503
    return 400


@app.exception_handler(ClosetError)
async def closet_error_handler(request: Request, exc: ClosetError) -> JSONResponse:
    status_code = _status_for(exc)
    log_event(LOGGER, logging.WARNING, "request_rejected", path=request.url.path, error=exc.code, status_code=status_code)
    return JSONResponse(status_code=status_code, content=exc.to_dict())


@app.exception_handler(ValueError)
async def value_error_handler(request: Request, exc: ValueError) -> JSONResponse:
    log_event(LOGGER, logging.WARNING, "request_invalid", path=request.url.path, detail=str(exc))
    return JSONResponse(status_code=400, content={"error": "invalid_request", "message": str(exc), "details": {}})


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    log_event(LOGGER, logging.WARNING, "request_schema_invalid", path=request.url.path, error_count=len(exc.errors()))
    return JSONResponse(status_code=422, content=validation_failure("Request validation failed", exc.errors()))


@app.get("/healthz")
async def healthcheck(closet: ClosetComfortApp = Depends(get_closet_app)) -> dict:
    """Lightweight readiness probe."""

    return {
        "status": "ok",
        "service": "closet-comfort",
        "environment": closet.config.environment or "local",
        "feedback_policy": closet.config.feedback_policy,
    }


@app.post("/api/upload")
def upload_garment(request: GarmentCreateRequest, closet: ClosetComfortApp = Depends(get_closet_app)) -> dict:
    """Register a new garment, optionally with its photo as base64."""

    stored = closet.garment_tools.add_garment(
        request.user_id,
        {
            "name": request.name,
            "category": request.category,
            "comfort_temperature": request.comfort_temperature,
            "image": request.image,
        },
    )
    return {"message": "Garment uploaded successfully.", "id": stored["garment_id"], "garment": stored}


@app.get("/api/images")
def list_garments(
    user_id: str = Query(..., alias="userId", min_length=1),
    category: Optional[str] = None,
    closet: ClosetComfortApp = Depends(get_closet_app),
) -> list:
    return closet.garment_tools.list_garments(user_id, category=category)


@app.put("/api/update")
def update_garment(request: GarmentUpdateRequest, closet: ClosetComfortApp = Depends(get_closet_app)) -> dict:
    return closet.garment_tools.update_garment(request.user_id, request.garment_id, request.changed_fields())


@app.delete("/api/delete")
def delete_garment(request: GarmentDeleteRequest, closet: ClosetComfortApp = Depends(get_closet_app)) -> dict:
    return closet.garment_tools.delete_garment(request.user_id, request.garment_id)


@app.post("/api/register-outfit")
def register_outfit(request: RegisterOutfitRequest, closet: ClosetComfortApp = Depends(get_closet_app)) -> dict:
    session = closet.register_outfit(user_id=request.user_id, date=request.date, garment_ids=request.garment_ids)
    return session.to_dict()


@app.get("/api/outfit")
def get_outfit(
    user_id: str = Query(..., alias="userId", min_length=1),
    date: str = Query(...),
    closet: ClosetComfortApp = Depends(get_closet_app),
) -> dict:
    return closet.get_session(user_id=user_id, date=date).to_dict()


@app.post("/api/submit-feedback")
def submit_feedback(request: FeedbackRequest, closet: ClosetComfortApp = Depends(get_closet_app)) -> dict:
    result = closet.apply_feedback(user_id=request.user_id, date=request.date, rating=request.rating)
    return result.to_dict()


@app.get("/api/recommendations")
def recommendations(
    user_id: str = Query(..., alias="userId", min_length=1),
    temperature: Optional[float] = None,
    lat: Optional[float] = Query(None, ge=-90, le=90),
    lon: Optional[float] = Query(None, ge=-180, le=180),
    tolerance: Optional[int] = Query(None, ge=0),
    closet: ClosetComfortApp = Depends(get_closet_app),
) -> dict:
    return closet.recommend(user_id=user_id, temperature=temperature, lat=lat, lon=lon, tolerance=tolerance)


@app.get("/weather")
def weather_proxy(
    lat: float = Query(..., ge=-90, le=90),
    lon: float = Query(..., ge=-180, le=180),
    closet: ClosetComfortApp = Depends(get_closet_app),
) -> dict:
    """Pass the provider's current-conditions payload through to the client."""

    return closet.weather_provider.fetch_raw(lat, lon)


def get_app() -> FastAPI:
    """Expose the FastAPI instance for ASGI servers."""

    return app


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("server.api:app", host="0.0.0.0", port=8080, reload=False)

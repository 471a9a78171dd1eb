"""Pet API routes.

Provides endpoints for:
- Serving the pet's web page
- Getting the pet's name and current status
- Sending an action to the pet and returning its reply
"""

from __future__ import annotations

from pathlib import Path

import structlog
from fastapi import APIRouter, Request
from fastapi.responses import FileResponse, JSONResponse
from pydantic import BaseModel, Field, ValidationError, field_validator

logger = structlog.get_logger()

router = APIRouter()

INDEX_FILE = "index.html"


# -------------------------------------------------------------------------
# Request/Response Models
# -------------------------------------------------------------------------


class ActionRequest(BaseModel):
    """Request model for the pet action endpoint."""

    action: str = Field(default="", description="feed, play, sleep, or any other text action")
    text: str = Field(default="", description="Game name for play, or a message to the pet")

    @field_validator("action", "text", mode="before")
    @classmethod
    def null_as_empty(cls, value):
        return "" if value is None else value


class ActionResponse(BaseModel):
    """Response model for the pet action endpoint."""

    response: str = Field(..., description="The pet's reply")


class StatusModel(BaseModel):
    hunger: int
    energy: int
    happiness: int


class PetStatusResponse(BaseModel):
    """Response model for the pet status endpoint."""

    name: str = Field(..., description="The pet's name")
    status: StatusModel


class ErrorResponse(BaseModel):
    error: str


def error_response(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": message})


# -------------------------------------------------------------------------
# GET /
# -------------------------------------------------------------------------


@router.get("/", include_in_schema=False)
async def index(request: Request):
    """Serve the pet's web page from the static directory."""
    settings = request.app.state.app_state.settings
    path = Path(settings.static_dir) / INDEX_FILE

    if not path.is_file():
        logger.warning("static_file_missing", path=str(path))
        return error_response(404, "page not found")

    return FileResponse(path)


# -------------------------------------------------------------------------
# GET /api/pet-status
# -------------------------------------------------------------------------


@router.get("/api/pet-status", response_model=PetStatusResponse, tags=["pet"])
async def get_pet_status(request: Request) -> PetStatusResponse:
    """Get the pet's name and attributes."""
    pet = request.app.state.app_state.pet
    status = await pet.status()

    return PetStatusResponse(
        name=pet.name,
        status=StatusModel(**status.to_dict()),
    )


# -------------------------------------------------------------------------
# POST /api/pet-action
# -------------------------------------------------------------------------


@router.post(
    "/api/pet-action",
    response_model=ActionResponse,
    responses={400: {"model": ErrorResponse}, 500: {"model": ErrorResponse}},
    tags=["pet"],
)
async def post_pet_action(request: Request):
    """Apply an action to the pet and return its reply.

    Returns:
        The reply text, 400 if the body is not a valid action request,
        500 if the language model call fails.
    """
    try:
        body = await request.json()
        action_request = ActionRequest.model_validate(body)
    except (ValueError, ValidationError) as exc:
        logger.info("pet_action_rejected", error_type=type(exc).__name__)
        return error_response(400, "cannot parse JSON")

    pet = request.app.state.app_state.pet

    try:
        reply = await pet.handle_action(action_request.action, action_request.text)
    except Exception as exc:
        logger.error(
            "pet_action_failed",
            action=action_request.action,
            error=str(exc),
            error_type=type(exc).__name__,
        )
        return error_response(500, "failed to generate pet response")

    return ActionResponse(response=reply)

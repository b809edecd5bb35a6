"""
Conversation import API routes.

Endpoints for bulk-importing exported conversations into an environment and
for reading the environment's import watermark.
"""

import logging
from typing import Any

from fastapi import APIRouter, Body, Depends
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session

from trackport.api.schemas import (
    ErrorResponse,
    ImportPartialResponse,
    ImportSuccessResponse,
    ImportWriteError,
    WatermarkResponse,
)
from trackport.db.connection import SessionFactory, get_db, get_session_factory
from trackport.exceptions import ImportRequestError
from trackport.models.db import Environment
from trackport.pipeline import ImportCoordinator, latest_watermark

logger = logging.getLogger(__name__)

router = APIRouter()

INVALID_ENV_MESSAGE = "environement should be one of: production, staging, developement"
MISSING_FIELDS_MESSAGE = "the body is missing conversations or processNlu, or both"
CONVERSATIONS_TYPE_MESSAGE = "conversations should be an array"
PROCESS_NLU_TYPE_MESSAGE = "processNlu should be an boolean"


def validate_environment(env: str) -> str:
    """
    Check an environment path parameter.

    Raises:
        ImportRequestError: If env is not a known environment
    """
    if env not in Environment.values():
        raise ImportRequestError(INVALID_ENV_MESSAGE)
    return env


def parse_import_body(body: Any) -> tuple[list, bool]:
    """
    Extract ``conversations`` and ``processNlu`` from an import request body.

    Checks run in a fixed order and the first failure wins.

    Raises:
        ImportRequestError: If a field is missing or has the wrong type
    """
    if not isinstance(body, dict) or "conversations" not in body or "processNlu" not in body:
        raise ImportRequestError(MISSING_FIELDS_MESSAGE)

    conversations = body["conversations"]
    process_nlu = body["processNlu"]
    if not isinstance(conversations, list):
        raise ImportRequestError(CONVERSATIONS_TYPE_MESSAGE)
    if not isinstance(process_nlu, bool):
        raise ImportRequestError(PROCESS_NLU_TYPE_MESSAGE)
    return conversations, process_nlu


@router.post(
    "/environment/{env}",
    responses={
        200: {"model": ImportSuccessResponse},
        206: {"model": ImportPartialResponse},
        400: {"model": ErrorResponse},
        500: {"model": list[ImportWriteError]},
    },
)
def import_conversations(
    env: str,
    body: Any = Body(default=None),
    session_factory: SessionFactory = Depends(get_session_factory),
) -> JSONResponse:
    """
    Import a batch of conversations into an environment.

    Conversations are upserted in full. When ``processNlu`` is true, parse
    data newer than the environment watermark is back-filled into activity.

    Returns:
        200 when everything was imported, 206 with a report when some
        conversations or parse data were skipped, 500 with the write errors
        when the store rejected any write
    """
    validate_environment(env)
    conversations, process_nlu = parse_import_body(body)

    report = ImportCoordinator(session_factory).import_batch(
        conversations, env, process_nlu
    )
    return JSONResponse(
        status_code=report.status.http_status,
        content=report.to_response_body(),
    )


@router.get(
    "/environment/{env}/latest-imported-event",
    response_model=WatermarkResponse,
    responses={400: {"model": ErrorResponse}},
)
def get_latest_imported_event(
    env: str,
    session: Session = Depends(get_db),
) -> WatermarkResponse:
    """
    Get the import watermark of an environment.

    Returns:
        Update time of the most recently imported conversation in epoch
        seconds, or 0 when the environment has none
    """
    validate_environment(env)
    return WatermarkResponse(timestamp=latest_watermark(session, env))

"""
clue/api/help.py

POST /api/help — single-shot coaching hint for a student's code.

Flow:
  1. Validate the body via HelpRequest (Pydantic).
  2. Build the coaching prompt (policy + one user turn with text and images).
  3. Call the LLM once and wait for it.
  4. Return ``{"aiText": ...}`` (200) or ``{"error": ...}`` (500).

Every failure is converted to the error envelope here; nothing escapes the
handler. Malformed bodies are mapped to the same envelope by the
``RequestValidationError`` handler registered in ``clue.main``.
"""

from fastapi import APIRouter, status
from fastapi.responses import JSONResponse

from clue.core.logging import get_logger
from clue.schemas.help import HelpError, HelpRequest, HelpResponse
from clue.services.llm import CoachError, request_help

logger = get_logger(__name__)

router = APIRouter()


def error_response(message: str) -> JSONResponse:
    """Build the 500 failure envelope."""
    return JSONResponse(
        content=HelpError(error=message or "Unknown error").model_dump(),
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
    )


@router.post(
    "/help",
    response_model=HelpResponse,
    responses={500: {"model": HelpError}},
    summary="Get coaching hints for a code snippet",
)
async def ask_help(body: HelpRequest) -> JSONResponse:
    """Forward the student's request to the LLM and relay its text."""
    logger.info(
        "help_request",
        code_length=len(body.code or ""),
        ask_length=len(body.ask or ""),
        num_images=len(body.images),
    )

    try:
        ai_text = await request_help(body)
    except CoachError as exc:
        logger.error("help_failed", error=str(exc))
        return error_response(str(exc))
    except Exception as exc:
        logger.error(
            "help_failed_unexpected",
            error=str(exc),
            error_type=type(exc).__name__,
        )
        return error_response(str(exc))

    return JSONResponse(
        content=HelpResponse(ai_text=ai_text).model_dump(by_alias=True),
        status_code=status.HTTP_200_OK,
    )

"""
clue/services/llm.py

LangChain LLM integration for coaching hints.

Initializes a chat model based on available API keys (OpenAI → Gemini) and
performs exactly one call per Help request.

Rules:
    - No retries: the provider client is built with ``max_retries=0``.
    - A missing API key fails the request, not the process.
    - Never log the API key or the student's code.
"""

from clue.core.config import get_settings
from clue.core.logging import get_logger
from clue.schemas.help import HelpRequest
from clue.services.coach_prompt import build_help_messages

logger = get_logger(__name__)

FALLBACK_TEXT = "Sorry, I couldn’t generate guidance this time."


class CoachError(Exception):
    """Raised when a coaching hint cannot be produced."""

    pass


def _create_llm():
    """Create a LangChain chat model based on available API keys.

    Priority: OpenAI → Gemini.

    Raises:
        CoachError: If no API key is configured.
    """
    settings = get_settings()

    if settings.openai_api_key:
        from langchain_openai import ChatOpenAI

        model_name = settings.llm_model or "gpt-4o"
        logger.info("llm_init", provider="openai", model=model_name)
        return ChatOpenAI(
            model=model_name,
            api_key=settings.openai_api_key,
            max_retries=0,
        )

    if settings.gemini_api_key:
        from langchain_google_genai import ChatGoogleGenerativeAI

        model_name = settings.llm_model or "gemini-2.5-flash"
        logger.info("llm_init", provider="google", model=model_name)
        return ChatGoogleGenerativeAI(
            model=model_name,
            google_api_key=settings.gemini_api_key,
            max_retries=0,
        )

    raise CoachError(
        "No LLM API key configured. Set OPENAI_API_KEY or GEMINI_API_KEY in .env"
    )


def extract_text(message) -> str:
    """Flatten a chat model reply into plain text.

    Providers return either a string or a list of content blocks; only text
    blocks are kept.
    """
    content = getattr(message, "content", message)
    if isinstance(content, list):
        return "".join(
            str(block.get("text", "")) if isinstance(block, dict) else str(block)
            for block in content
        )
    if content is None:
        return ""
    return str(content)


async def request_help(payload: HelpRequest) -> str:
    """Ask the model for coaching hints on the student's request.

    Args:
        payload: The validated Help request.

    Returns:
        The model's text, or ``FALLBACK_TEXT`` when the reply has no text.

    Raises:
        CoachError: If no model is configured.
        Exception: Provider errors propagate unchanged to the endpoint.
    """
    settings = get_settings()
    messages = build_help_messages(payload, code_char_limit=settings.code_char_limit)

    llm = _create_llm()
    logger.info("llm_help_start", num_images=len(payload.images))

    reply = await llm.ainvoke(messages)
    text = extract_text(reply)

    if not text.strip():
        logger.warning("llm_help_empty_reply")
        return FALLBACK_TEXT

    logger.info("llm_help_success", response_length=len(text))
    return text

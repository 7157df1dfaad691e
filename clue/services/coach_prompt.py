"""
clue/services/coach_prompt.py

Prompt assembly for the coaching assistant.

The prompt has two parts:
  - ``COACHING_POLICY``: the fixed system instruction (coach, don't solve).
    Process-wide configuration; never mutated at runtime.
  - One user turn: a Jinja2-rendered text block with the student's question
    and a truncated copy of their code, followed by one image block per
    attachment in the order received.
"""

from jinja2 import Template
from langchain_core.messages import BaseMessage, HumanMessage, SystemMessage

from clue.core.logging import get_logger
from clue.schemas.help import HelpRequest

logger = get_logger(__name__)

COACHING_POLICY = """\
Help students understand and fix their code or lab assignments by guiding them through the process of debugging and problem-solving, without directly providing the full answer or solution code. Your responses should primarily focus on prompting the student to reason about their problem, analyze likely causes, and consider relevant concepts or debugging steps before they reach a solution. Only offer hints, explanations, or ask clarifying questions as needed. Do not write or output full solutions. Engage the student in a pedagogical manner to encourage learning and independent thought.

**Guidelines:**
- First, ask the student to describe the problem or share the specific error, output, or code snippet they are working on.
- Guide them with targeted hints or questions, focusing on underlying concepts, logic, or debugging techniques.
- Encourage the student to analyze their own code, reason step-by-step, and reflect on how each part functions.
- Avoid providing complete answers or explicit code solutions.
- Support student learning by modeling a problem-solving mindset and helping them recognize what to try next.
- Repeat this process interactively until the student is on track or indicates understanding.

**Output Format:**
Respond in a short paragraph tailored to the student’s input, using direct questions or hints to encourage reasoning. Do not include full code or direct answers.

**Important considerations:**
- Never give explicit final solutions.
- Always lead with reasoning, then guide the student step-by-step.
- Adjust guidance based on student input and progress.

**Reminder:**
Your role is to help students troubleshoot and learn problem-solving steps by guiding, questioning, and prompting reasoning, never by providing direct code answers."""

NO_ASK_PLACEHOLDER = "(no extra description provided)"
NO_CODE_PLACEHOLDER = "(none provided)"

STUDENT_TURN_TEMPLATE = """\
Student request/context:
• {{ ask or no_ask }}

Code snippet (may be partial):
{{ code or no_code }}

Task: Give coaching-only hints and questions. Do NOT provide solutions or final code.\
"""

_compiled_template = Template(STUDENT_TURN_TEMPLATE)


def truncate_code(code: str | None, limit: int) -> str:
    """Return the first ``limit`` characters of ``code``, or "" if it is blank.

    Truncation is silent: the caller is not told that anything was dropped.
    """
    if not code or not code.strip():
        return ""
    return code[:limit]


def compile_student_text(*, ask: str | None, code: str | None, code_char_limit: int) -> str:
    """Render the text block of the student's turn."""
    return _compiled_template.render(
        ask=(ask or "").strip(),
        code=truncate_code(code, code_char_limit),
        no_ask=NO_ASK_PLACEHOLDER,
        no_code=NO_CODE_PLACEHOLDER,
    )


def build_help_messages(payload: HelpRequest, *, code_char_limit: int) -> list[BaseMessage]:
    """Build the full message list sent to the chat model.

    Args:
        payload: The validated request body.
        code_char_limit: Maximum number of code characters to forward.

    Returns:
        ``[SystemMessage(policy), HumanMessage([text, image, image, ...])]``.
    """
    content: list[dict] = [
        {
            "type": "text",
            "text": compile_student_text(
                ask=payload.ask,
                code=payload.code,
                code_char_limit=code_char_limit,
            ),
        }
    ]
    for image in payload.images:
        content.append({"type": "image_url", "image_url": {"url": image.src}})

    logger.debug(
        "help_prompt_compiled",
        code_length=len(payload.code or ""),
        truncated=len(payload.code or "") > code_char_limit,
        has_ask=bool((payload.ask or "").strip()),
        num_images=len(payload.images),
    )

    return [
        SystemMessage(content=COACHING_POLICY),
        HumanMessage(content=content),
    ]

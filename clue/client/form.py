"""
clue/client/form.py

Form controller for the Help page: the Python counterpart of the browser
form served at ``GET /``.

All form state lives on one ``HelpFormState`` object owned by the controller
and changes only through the controller's operations. At most one Help
request is outstanding at a time; while it runs ``can_submit`` is False and
``submit()`` does nothing.

Usage:
    async with httpx.AsyncClient(base_url="http://localhost:8000") as http:
        form = HelpFormController(http)
        form.set_code(source)
        await form.add_paths([Path("lab.png")])
        await form.submit()
        print(form.view().text)
"""

import asyncio
import base64
import mimetypes
from collections.abc import Iterable
from dataclasses import dataclass, field
from pathlib import Path
from typing import Literal

import httpx

from clue.core.logging import get_logger

logger = get_logger(__name__)

HELP_ENDPOINT = "/api/help"
ERROR_PREFIX = "Oops — "

PLACEHOLDER_TEXT = (
    "Hit Help to get coaching steps that point you in the right direction "
    "without spoiling the solution."
)


@dataclass(frozen=True)
class Attachment:
    """An uploaded image held in memory as name + data URI."""

    name: str
    src: str


@dataclass(frozen=True)
class UploadedFile:
    """Raw file as the picker hands it over."""

    name: str
    data: bytes
    content_type: str | None = None


@dataclass
class HelpFormState:
    code: str = ""
    ask: str = ""
    attachments: list[Attachment] = field(default_factory=list)
    latest_file_name: str = ""
    ai_text: str = ""
    in_flight: bool = False


@dataclass(frozen=True)
class FormView:
    kind: Literal["loading", "response", "placeholder"]
    text: str = ""


def encode_data_uri(data: bytes, content_type: str | None) -> str:
    """Encode raw bytes as a base64 ``data:`` URI."""
    mime = content_type or "application/octet-stream"
    return f"data:{mime};base64,{base64.b64encode(data).decode('ascii')}"


def to_attachment(upload: UploadedFile) -> Attachment:
    content_type = upload.content_type or mimetypes.guess_type(upload.name)[0]
    return Attachment(name=upload.name, src=encode_data_uri(upload.data, content_type))


class HelpFormController:
    """Owns the form state and the single in-flight Help request."""

    def __init__(self, client: httpx.AsyncClient, endpoint: str = HELP_ENDPOINT) -> None:
        self._client = client
        self._endpoint = endpoint
        self.state = HelpFormState()

    # ── Fields ────────────────────────────────────────────────────────────────

    def set_code(self, code: str) -> None:
        self.state.code = code

    def set_ask(self, ask: str) -> None:
        self.state.ask = ask

    # ── Attachments ───────────────────────────────────────────────────────────

    def add_attachments(self, files: Iterable[UploadedFile]) -> None:
        """Append each file, in the order given.

        The "most recent file" label follows the first file of the batch only.
        """
        files = list(files)
        if not files:
            return
        self.state.latest_file_name = files[0].name
        for upload in files:
            self.state.attachments.append(to_attachment(upload))
        logger.debug("attachments_added", count=len(files), total=len(self.state.attachments))

    async def add_paths(self, paths: Iterable[Path]) -> None:
        """Read image files from disk without blocking the loop, then attach them."""
        paths = list(paths)
        blobs = await asyncio.gather(*(asyncio.to_thread(p.read_bytes) for p in paths))
        self.add_attachments(
            UploadedFile(name=p.name, data=blob) for p, blob in zip(paths, blobs)
        )

    def remove_attachment(self, index: int) -> None:
        """Drop the attachment at ``index``.

        Raises:
            IndexError: If ``index`` is out of range.
        """
        if not 0 <= index < len(self.state.attachments):
            raise IndexError(f"attachment index {index} out of range")
        del self.state.attachments[index]
        if index == 0:
            remaining = self.state.attachments
            self.state.latest_file_name = remaining[0].name if remaining else ""

    # ── Submission ────────────────────────────────────────────────────────────

    @property
    def can_submit(self) -> bool:
        return not self.state.in_flight

    def payload(self) -> dict:
        return {
            "code": self.state.code,
            "ask": self.state.ask,
            "images": [{"name": a.name, "src": a.src} for a in self.state.attachments],
        }

    async def submit(self) -> None:
        """Send the current form to the Help endpoint and store the outcome.

        Ignored while a previous submission is still outstanding.
        """
        if not self.can_submit:
            logger.debug("submit_ignored_in_flight")
            return

        self.state.ai_text = ""
        self.state.in_flight = True
        try:
            self.state.ai_text = await self._post(self.payload())
        except Exception as exc:
            logger.warning("help_submit_failed", error=str(exc), error_type=type(exc).__name__)
            self.state.ai_text = f"{ERROR_PREFIX}{str(exc) or type(exc).__name__}"
        finally:
            self.state.in_flight = False

    async def _post(self, payload: dict) -> str:
        response = await self._client.post(self._endpoint, json=payload)
        try:
            body = response.json()
        except ValueError:
            body = {}
        if not isinstance(body, dict):
            body = {}
        if response.is_error:
            raise ValueError(body.get("error") or f"HTTP {response.status_code}")
        ai_text = body.get("aiText")
        if not isinstance(ai_text, str) or not ai_text:
            raise ValueError("The server sent back an empty response.")
        return ai_text

    # ── Rendering ─────────────────────────────────────────────────────────────

    def view(self) -> FormView:
        if self.state.in_flight:
            return FormView(kind="loading")
        if self.state.ai_text:
            return FormView(kind="response", text=self.state.ai_text)
        return FormView(kind="placeholder", text=PLACEHOLDER_TEXT)

# ccreport/gmail.py
"""Mail gateway: finds unprocessed notification threads and labels them.

The workflow only needs the small :class:`MailGateway` contract below;
:class:`GmailClient` implements it on top of the Gmail REST API.  Only the
``text/plain`` body of a message is ever read.
"""
from __future__ import annotations

import base64
import logging
import re
from typing import Any, Optional, Protocol, Sequence

from ccreport.google_api import GoogleApiClient

__all__ = [
    "MailMessage",
    "MailThread",
    "MailGateway",
    "GmailClient",
    "GmailThread",
    "GmailMessage",
    "build_search_query",
    "decode_plain_body",
]

logger = logging.getLogger(__name__)

_CHARSET_RE = re.compile(r"charset=\"?(?P<charset>[\w.:-]+)", re.IGNORECASE)


# ---------------------------------------------------------------------------
# Contract
# ---------------------------------------------------------------------------
class MailMessage(Protocol):
    def plain_body(self) -> str: ...


class MailThread(Protocol):
    id: str

    def messages(self) -> Sequence[MailMessage]: ...


class MailGateway(Protocol):
    def find_unprocessed_threads(self, primary_label: str, exclude_label: str) -> Sequence[MailThread]: ...

    def mark_processed(self, thread: MailThread, label: str) -> None: ...


_PLAIN_LABEL_RE = re.compile(r"[\w/-]+")


def _label_term(name: str) -> str:
    if _PLAIN_LABEL_RE.fullmatch(name):
        return f"label:{name}"
    # Gmail search has no escape for '"' inside a quoted term
    return 'label:"{}"'.format(name.replace('"', ""))


def build_search_query(primary_label: str, exclude_label: str) -> str:
    """Search predicate: has the primary label AND lacks the processed one."""
    return f"{_label_term(primary_label)} -{_label_term(exclude_label)}"


# ---------------------------------------------------------------------------
# MIME helpers
# ---------------------------------------------------------------------------
def _part_charset(part: dict[str, Any]) -> str:
    for header in part.get("headers", []):
        if header.get("name", "").lower() == "content-type":
            if m := _CHARSET_RE.search(header.get("value", "")):
                return m["charset"]
    return "utf-8"


def _find_plain_part(part: dict[str, Any]) -> Optional[dict[str, Any]]:
    if part.get("mimeType", "").lower() == "text/plain" and part.get("body", {}).get("data"):
        return part
    for child in part.get("parts", []):
        if (found := _find_plain_part(child)) is not None:
            return found
    return None


def decode_plain_body(payload: dict[str, Any]) -> str:
    """Return the first ``text/plain`` part of a Gmail message *payload*.

    Gmail ships part bodies as unpadded base64url.  Messages without a plain
    text part yield an empty string.
    """
    part = _find_plain_part(payload)
    if part is None:
        return ""
    data = part["body"]["data"]
    raw = base64.urlsafe_b64decode(data + "=" * (-len(data) % 4))
    try:
        return raw.decode(_part_charset(part), errors="replace")
    except LookupError:
        return raw.decode("utf-8", errors="replace")


# ---------------------------------------------------------------------------
# Gmail implementation
# ---------------------------------------------------------------------------
class GmailMessage:
    def __init__(self, message_id: str, payload: dict[str, Any]) -> None:
        self.id = message_id
        self._payload = payload

    def plain_body(self) -> str:
        return decode_plain_body(self._payload)

    def __repr__(self) -> str:
        return f"GmailMessage(id={self.id!r})"


class GmailThread:
    """Lazily loaded thread; messages are fetched on first access."""

    def __init__(self, client: "GmailClient", thread_id: str) -> None:
        self.id = thread_id
        self._client = client
        self._messages: list[GmailMessage] | None = None

    def messages(self) -> list[GmailMessage]:
        if self._messages is None:
            self._messages = self._client.get_thread_messages(self.id)
        return self._messages

    def __repr__(self) -> str:
        return f"GmailThread(id={self.id!r})"


class GmailClient(GoogleApiClient):
    """Subset of the Gmail API used by the scanner."""

    service = "Gmail"
    base_url = "https://gmail.googleapis.com/gmail/v1/users/me"

    def __init__(self, **kwargs: Any) -> None:
        super().__init__(**kwargs)
        self._label_ids: dict[str, str] = {}

    # ------------------------------------------------------------- threads
    def find_unprocessed_threads(self, primary_label: str, exclude_label: str) -> list[GmailThread]:
        query = build_search_query(primary_label, exclude_label)
        threads: list[GmailThread] = []
        page_token: str | None = None
        while True:
            params: dict[str, Any] = {"q": query}
            if page_token:
                params["pageToken"] = page_token
            data = self._get("/threads", params=params)
            threads.extend(GmailThread(self, t["id"]) for t in data.get("threads", []))
            page_token = data.get("nextPageToken")
            if not page_token:
                break
        logger.debug("Gmail query %r returned %d threads", query, len(threads))
        return threads

    def get_thread_messages(self, thread_id: str) -> list[GmailMessage]:
        data = self._get(f"/threads/{thread_id}", params={"format": "full"})
        return [GmailMessage(m["id"], m.get("payload", {})) for m in data.get("messages", [])]

    # -------------------------------------------------------------- labels
    def _label_id(self, name: str) -> str:
        if name in self._label_ids:
            return self._label_ids[name]

        for label in self._get("/labels").get("labels", []):
            if label.get("name") == name:
                self._label_ids[name] = label["id"]
                return label["id"]

        logger.info("Creating the processed label: %s", name)
        created = self._post(
            "/labels",
            json={"name": name, "labelListVisibility": "labelShow", "messageListVisibility": "show"},
        )
        self._label_ids[name] = created["id"]
        return created["id"]

    def mark_processed(self, thread: MailThread, label: str) -> None:
        """Attach *label* to *thread*, creating the label first if needed."""
        label_id = self._label_id(label)
        self._post(f"/threads/{thread.id}/modify", json={"addLabelIds": [label_id]})

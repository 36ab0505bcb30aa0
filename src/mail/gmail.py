"""Gmail implementation of MailTransport."""

import base64
import logging
import re
from collections.abc import Iterable
from typing import Any

from src.core.google_auth import build_service

logger = logging.getLogger(__name__)

_ANGLE_ADDRESS = re.compile(r"<([^>]+)>")

# Removed from processed messages: marks them read and archives them
_PROCESSED_REMOVE_LABELS = ["UNREAD", "INBOX"]
# Gmail rejects batchModify calls with more ids than this.
BATCH_MODIFY_LIMIT = 1000


def sender_address(headers: Iterable[dict[str, str]]) -> str | None:
    """Lowercased address from the From header (``Name <a@b>`` or bare)."""
    for header in headers:
        if header.get("name", "").lower() != "from":
            continue
        value = header.get("value", "")
        if not value:
            return None
        match = _ANGLE_ADDRESS.search(value)
        return (match.group(1) if match else value).strip().lower()
    return None


def is_allowed_sender(headers: Iterable[dict[str, str]], senders: Iterable[str]) -> bool:
    address = sender_address(headers)
    return address is not None and address in {s.lower() for s in senders}


def extract_html_body(payload: dict[str, Any] | None) -> str | None:
    """First text/html part of a message payload, searched depth-first."""
    if not payload:
        return None
    data = payload.get("body", {}).get("data")
    if payload.get("mimeType") == "text/html" and data:
        padded = data + "=" * (-len(data) % 4)
        return base64.urlsafe_b64decode(padded).decode("utf-8", errors="replace")
    for part in payload.get("parts", []) or []:
        html = extract_html_body(part)
        if html:
            return html
    return None


class GmailMailbox:
    """Reads alert emails from the authenticated user's Gmail account."""

    def __init__(
        self,
        credentials: Any = None,
        *,
        senders: Iterable[str],
        processed_label: str = "Jobs/LinkedIn",
        service: Any = None,
    ) -> None:
        self._credentials = credentials
        self._service = service
        self._senders = [s.lower() for s in senders]
        self._processed_label = processed_label
        self._label_id: str | None = None

    def _api(self) -> Any:
        if self._service is None:
            self._service = build_service("gmail", "v1", self._credentials)
        return self._service.users()

    def list_unread(self, query: str) -> list[str]:
        logger.info("Fetching job alert emails: %s", query)
        ids: list[str] = []
        page_token: str | None = None
        while True:
            response = (
                self._api()
                .messages()
                .list(userId="me", q=query, pageToken=page_token)
                .execute()
            )
            page = [m["id"] for m in response.get("messages", []) if m.get("id")]
            logger.debug("Fetched message list page: %d", len(page))
            ids.extend(page)
            page_token = response.get("nextPageToken")
            if not page_token:
                break
        logger.info("Found %d unread alert emails", len(ids))
        return ids

    def fetch_body(self, message_id: str) -> str | None:
        message = (
            self._api()
            .messages()
            .get(userId="me", id=message_id, format="full")
            .execute()
        )
        payload = message.get("payload") or {}
        if not is_allowed_sender(payload.get("headers", []), self._senders):
            logger.warning("Message %s is not from an alert sender, skipping", message_id)
            return None
        html = extract_html_body(payload)
        if not html:
            logger.warning("No HTML body found for message %s", message_id)
        return html

    def mark_processed(self, message_ids: list[str]) -> None:
        """Label, mark read and archive the given messages."""
        if not message_ids:
            return
        label_id = self._get_or_create_label()
        for start in range(0, len(message_ids), BATCH_MODIFY_LIMIT):
            self._api().messages().batchModify(
                userId="me",
                body={
                    "ids": message_ids[start:start + BATCH_MODIFY_LIMIT],
                    "addLabelIds": [label_id],
                    "removeLabelIds": _PROCESSED_REMOVE_LABELS,
                },
            ).execute()
        logger.info("Marked %d messages as processed (%s)", len(message_ids), self._processed_label)

    def _get_or_create_label(self) -> str:
        if self._label_id:
            return self._label_id

        labels = self._api().labels().list(userId="me").execute().get("labels", [])
        existing = next((lb for lb in labels if lb.get("name") == self._processed_label), None)
        if existing and existing.get("id"):
            self._label_id = existing["id"]
            return self._label_id

        created = (
            self._api()
            .labels()
            .create(
                userId="me",
                body={
                    "name": self._processed_label,
                    "labelListVisibility": "labelShow",
                    "messageListVisibility": "show",
                },
            )
            .execute()
        )
        if not created.get("id"):
            msg = f"Failed to create label: {self._processed_label}"
            raise RuntimeError(msg)
        self._label_id = created["id"]
        logger.info("Created label %s", self._processed_label)
        return self._label_id

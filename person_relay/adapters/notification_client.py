"""Relay detected images to a chat webhook."""
from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

import requests

LOGGER = logging.getLogger(__name__)


@dataclass(frozen=True)
class NotificationOutcome:
    delivered: bool
    status_code: Optional[int] = None
    error: Optional[str] = None


class NotificationClient:
    """Post an image as multipart form data; failures come back as outcomes, never exceptions."""

    def __init__(
        self,
        webhook_url: Optional[str],
        *,
        timeout: Optional[float] = None,
        session: Optional[requests.Session] = None,
    ) -> None:
        self.webhook_url = webhook_url
        self.timeout = timeout
        self._session = session or requests.Session()

    def send(self, image_path: Path) -> NotificationOutcome:
        if not self.webhook_url:
            return NotificationOutcome(delivered=False, error="webhook not configured")

        try:
            with image_path.open("rb") as handle:
                response = self._session.post(
                    self.webhook_url,
                    files={"file": (image_path.name, handle)},
                    timeout=self.timeout,
                )
        except (requests.RequestException, OSError) as exc:
            return NotificationOutcome(delivered=False, error=f"failed to send request: {exc}")

        if not 200 <= response.status_code < 300:
            return NotificationOutcome(
                delivered=False,
                status_code=response.status_code,
                error=f"unexpected response status: {response.status_code}",
            )
        LOGGER.debug("Webhook accepted %s with status %d", image_path.name, response.status_code)
        return NotificationOutcome(delivered=True, status_code=response.status_code)

    def close(self) -> None:
        self._session.close()

"""Client for the DeepDetect-style inference server."""
from __future__ import annotations

import json
import logging
from typing import Any, Dict, Optional

import requests
from pydantic import ValidationError

from person_relay.adapters.image_store import ImageStore
from person_relay.core.models import PredictionResponse

LOGGER = logging.getLogger(__name__)


class DetectionError(RuntimeError):
    """Base class for failures of the inference call."""


class DetectionRequestError(DetectionError):
    """The request never produced a response (network failure, unreadable image)."""


class DetectionDecodeError(DetectionError):
    """The server answered with something that is not a prediction response."""


class DetectionClient:
    """Send a stored image to the inference server and decode the predictions.

    In ``path`` mode the server reads the image from a volume it shares with
    this service, so only ``<server_data_prefix><name>`` travels in a JSON
    body. In ``upload`` mode the image bytes are posted as multipart data.
    """

    def __init__(
        self,
        url: str,
        store: ImageStore,
        *,
        mode: str = "path",
        service: str = "detection_600",
        confidence_threshold: float = 0.3,
        use_gpu: bool = False,
        server_data_prefix: str = "/data/",
        timeout: Optional[float] = None,
        session: Optional[requests.Session] = None,
    ) -> None:
        if mode not in {"path", "upload"}:
            raise ValueError(f"Unknown detection mode '{mode}'")
        self.url = url
        self.store = store
        self.mode = mode
        self.service = service
        self.confidence_threshold = confidence_threshold
        self.use_gpu = use_gpu
        self.server_data_prefix = server_data_prefix
        self.timeout = timeout
        self._session = session or requests.Session()

    def build_payload(self, stored_name: str) -> Dict[str, Any]:
        return {
            "service": self.service,
            "parameters": {
                "input": {},
                "output": {"confidence_threshold": self.confidence_threshold, "bbox": True},
                "mllib": {"gpu": self.use_gpu},
            },
            "data": [f"{self.server_data_prefix}{stored_name}"],
        }

    def detect(self, stored_name: str) -> PredictionResponse:
        try:
            if self.mode == "upload":
                response = self._post_upload(stored_name)
            else:
                response = self._session.post(
                    self.url,
                    json=self.build_payload(stored_name),
                    timeout=self.timeout,
                )
        except requests.RequestException as exc:
            raise DetectionRequestError(f"Error sending request to inference server: {exc}") from exc

        decoded = self._decode(response)
        if not decoded.succeeded:
            LOGGER.warning(
                "Inference server reported status %d for %s: %s",
                decoded.status.code,
                stored_name,
                decoded.status.msg,
            )
        return decoded

    def close(self) -> None:
        self._session.close()

    def _post_upload(self, stored_name: str) -> requests.Response:
        path = self.store.path(stored_name)
        try:
            handle = path.open("rb")
        except OSError as exc:
            raise DetectionRequestError(f"Could not open image file {path}: {exc}") from exc
        with handle:
            return self._session.post(
                self.url,
                files={"file": (path.name, handle)},
                timeout=self.timeout,
            )

    @staticmethod
    def _decode(response: requests.Response) -> PredictionResponse:
        try:
            payload = json.loads(response.content)
        except (json.JSONDecodeError, UnicodeDecodeError) as exc:
            raise DetectionDecodeError(f"Error decoding JSON response: {exc}") from exc
        try:
            return PredictionResponse.model_validate(payload)
        except ValidationError as exc:
            raise DetectionDecodeError(f"Unexpected prediction response: {exc}") from exc

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import BinaryIO, Callable, Dict, Iterable, List, Optional

from person_relay.adapters.detection_client import DetectionClient, DetectionError
from person_relay.adapters.image_store import ImageStore
from person_relay.adapters.notification_client import NotificationClient, NotificationOutcome
from person_relay.adapters.weather_client import WeatherClient
from person_relay.core.detection_queue import DetectionQueue
from person_relay.core.models import DetectionRecord
from person_relay.core.predictions import DEFAULT_SUBJECT_LABELS, matched_label


logger = logging.getLogger(__name__)

TIME_FORMAT = "%Y-%m-%d %H:%M:%S"


@dataclass(frozen=True)
class UploadResult:
    stored_name: str
    detected: bool
    label: Optional[str] = None
    notification: Optional[NotificationOutcome] = None
    evicted: Optional[DetectionRecord] = None


class RelayService:
    """Run an upload through storage, inference, notification and the recent-detections queue.

    The service owns a stored image until it either discards it (no subject
    found) or hands it to the queue, which deletes it later on eviction.
    """

    def __init__(
        self,
        store: ImageStore,
        detector: DetectionClient,
        notifier: NotificationClient,
        weather: WeatherClient,
        queue: DetectionQueue,
        subject_labels: Iterable[str] = DEFAULT_SUBJECT_LABELS,
        detection_window: int = 10,
        keep_failed_uploads: bool = False,
        clock: Callable[[], datetime] = datetime.now,
    ) -> None:
        self.store = store
        self.detector = detector
        self.notifier = notifier
        self.weather = weather
        self.queue = queue
        self.subject_labels = tuple(subject_labels)
        self.detection_window = max(detection_window, 1)
        self.keep_failed_uploads = keep_failed_uploads
        self._clock = clock

    def handle_upload(self, filename: str, stream: BinaryIO) -> UploadResult:
        stored_name = self.store.save(filename, stream)

        try:
            response = self.detector.detect(stored_name)
        except DetectionError:
            if not self.keep_failed_uploads:
                self.store.delete(stored_name)
            raise

        label = matched_label(response, self.subject_labels)
        if label is None:
            logger.info("Person not detected in %s", stored_name)
            self.store.delete(stored_name)
            return UploadResult(stored_name=stored_name, detected=False)

        logger.info("Person detected in %s (%s)", stored_name, label)
        outcome = self.notifier.send(self.store.path(stored_name))
        if outcome.delivered:
            logger.info("Image %s sent to webhook", stored_name)
        else:
            logger.warning("Error sending %s to webhook: %s", stored_name, outcome.error)

        evicted = self.queue.push(DetectionRecord(image=stored_name, detected_at=self._clock()))
        return UploadResult(
            stored_name=stored_name,
            detected=True,
            label=label,
            notification=outcome,
            evicted=evicted,
        )

    def recent_detections(self) -> List[Dict[str, str]]:
        records = self.queue.recent(self.detection_window)
        if not records:
            return []

        report = self.weather.current()
        if report.error:
            logger.warning("Failed to get weather info: %s", report.error)

        return [
            {
                "imageUrl": record.image,
                "time": record.detected_at.strftime(TIME_FORMAT),
                "weather": report.condition,
            }
            for record in records
        ]

from person_relay.adapters.detection_client import DetectionClient
from person_relay.adapters.image_store import ImageStore
from person_relay.adapters.notification_client import NotificationClient
from person_relay.adapters.weather_client import WeatherClient
from person_relay.app.settings import AppSettings
from person_relay.core.detection_queue import DetectionQueue
from person_relay.services.relay_service import RelayService


def build_service(settings: AppSettings) -> RelayService:
    timeout = settings.request_timeout_seconds
    store = ImageStore(settings.images_dir)
    detector = DetectionClient(
        settings.detection_url,
        store,
        mode=settings.detection_mode,
        service=settings.detection_service,
        confidence_threshold=settings.confidence_threshold,
        use_gpu=settings.use_gpu,
        server_data_prefix=settings.server_data_prefix,
        timeout=timeout,
    )
    notifier = NotificationClient(settings.webhook_url, timeout=timeout)
    weather = WeatherClient(
        settings.weather_api_key,
        settings.weather_city,
        url=settings.weather_url,
        timeout=timeout,
    )
    return RelayService(
        store,
        detector,
        notifier,
        weather,
        DetectionQueue(store, capacity=settings.queue_capacity),
        subject_labels=settings.subject_labels,
        detection_window=settings.detection_window,
        keep_failed_uploads=settings.keep_failed_uploads,
    )

import json
from unittest.mock import MagicMock

import pytest
import requests

from person_relay.adapters.detection_client import (
    DetectionClient,
    DetectionDecodeError,
    DetectionRequestError,
)
from person_relay.adapters.image_store import ImageStore
from person_relay.adapters.notification_client import NotificationClient
from person_relay.adapters.weather_client import UNKNOWN_WEATHER, WeatherClient


def _http_response(status_code: int = 200, payload: object = None, content: bytes = None) -> MagicMock:
    response = MagicMock()
    response.status_code = status_code
    if content is None:
        content = json.dumps(payload if payload is not None else {}).encode("utf-8")
    response.content = content
    response.json.return_value = payload
    if status_code >= 400:
        response.raise_for_status.side_effect = requests.HTTPError(f"{status_code} Error")
    return response


PREDICTION_PAYLOAD = {
    "status": {"code": 200, "msg": "OK"},
    "head": {"method": "/predict", "service": "detection_600", "time": 120.0},
    "body": {
        "predictions": [
            {
                "uri": "/data/upload-cam.jpg",
                "classes": [
                    {"bbox": {"xmin": 0, "ymin": 0, "xmax": 10, "ymax": 10}, "prob": 0.91, "cat": "Person", "last": True}
                ],
                "images": [],
            }
        ]
    },
}


def test_detection_client_sends_server_path_payload(tmp_path) -> None:
    session = MagicMock()
    session.post.return_value = _http_response(payload=PREDICTION_PAYLOAD)
    client = DetectionClient("http://inference/predict", ImageStore(tmp_path), timeout=5.0, session=session)

    response = client.detect("upload-cam.jpg")

    assert response.predictions[0].classes[0].cat == "Person"
    assert response.predictions[0].classes[0].last is True
    _, kwargs = session.post.call_args
    assert kwargs["json"]["service"] == "detection_600"
    assert kwargs["json"]["data"] == ["/data/upload-cam.jpg"]
    assert kwargs["json"]["parameters"]["output"] == {"confidence_threshold": 0.3, "bbox": True}
    assert kwargs["json"]["parameters"]["mllib"] == {"gpu": False}
    assert kwargs["timeout"] == 5.0


def test_detection_client_upload_mode_posts_file(tmp_path) -> None:
    store = ImageStore(tmp_path)
    store.path("upload-cam.jpg").write_bytes(b"jpeg-bytes")
    session = MagicMock()
    session.post.return_value = _http_response(payload=PREDICTION_PAYLOAD)
    client = DetectionClient("http://inference/predict", store, mode="upload", session=session)

    client.detect("upload-cam.jpg")

    _, kwargs = session.post.call_args
    filename, _handle = kwargs["files"]["file"]
    assert filename == "upload-cam.jpg"
    assert "json" not in kwargs


def test_detection_client_upload_mode_missing_file(tmp_path) -> None:
    client = DetectionClient("http://inference/predict", ImageStore(tmp_path), mode="upload", session=MagicMock())

    with pytest.raises(DetectionRequestError):
        client.detect("missing.jpg")


def test_detection_client_network_failure(tmp_path) -> None:
    session = MagicMock()
    session.post.side_effect = requests.ConnectionError("refused")
    client = DetectionClient("http://inference/predict", ImageStore(tmp_path), session=session)

    with pytest.raises(DetectionRequestError):
        client.detect("upload-cam.jpg")


def test_detection_client_malformed_json(tmp_path) -> None:
    session = MagicMock()
    session.post.return_value = _http_response(content=b"<html>bad gateway</html>")
    client = DetectionClient("http://inference/predict", ImageStore(tmp_path), session=session)

    with pytest.raises(DetectionDecodeError):
        client.detect("upload-cam.jpg")


def test_detection_client_wrong_shape(tmp_path) -> None:
    session = MagicMock()
    session.post.return_value = _http_response(payload={"body": {"predictions": "nope"}})
    client = DetectionClient("http://inference/predict", ImageStore(tmp_path), session=session)

    with pytest.raises(DetectionDecodeError):
        client.detect("upload-cam.jpg")


def test_detection_client_server_error_status_returns_empty(tmp_path) -> None:
    session = MagicMock()
    session.post.return_value = _http_response(
        status_code=500,
        payload={"status": {"code": 500, "msg": "InternalError"}, "head": {"method": "/predict"}},
    )
    client = DetectionClient("http://inference/predict", ImageStore(tmp_path), session=session)

    response = client.detect("upload-cam.jpg")

    assert response.succeeded is False
    assert response.predictions == []


def test_notification_client_delivers(tmp_path) -> None:
    image = tmp_path / "upload-cam.jpg"
    image.write_bytes(b"jpeg")
    session = MagicMock()
    session.post.return_value = _http_response(status_code=204)
    client = NotificationClient("https://chat.example/webhook", session=session)

    outcome = client.send(image)

    assert outcome.delivered is True
    assert outcome.status_code == 204
    args, kwargs = session.post.call_args
    assert args[0] == "https://chat.example/webhook"
    assert kwargs["files"]["file"][0] == "upload-cam.jpg"


def test_notification_client_reports_bad_status(tmp_path) -> None:
    image = tmp_path / "upload-cam.jpg"
    image.write_bytes(b"jpeg")
    session = MagicMock()
    session.post.return_value = _http_response(status_code=400)
    client = NotificationClient("https://chat.example/webhook", session=session)

    outcome = client.send(image)

    assert outcome.delivered is False
    assert outcome.status_code == 400


def test_notification_client_reports_network_failure(tmp_path) -> None:
    image = tmp_path / "upload-cam.jpg"
    image.write_bytes(b"jpeg")
    session = MagicMock()
    session.post.side_effect = requests.Timeout("slow")
    client = NotificationClient("https://chat.example/webhook", session=session)

    outcome = client.send(image)

    assert outcome.delivered is False
    assert "slow" in outcome.error


def test_notification_client_without_webhook_skips_request(tmp_path) -> None:
    session = MagicMock()
    client = NotificationClient(None, session=session)

    outcome = client.send(tmp_path / "upload-cam.jpg")

    assert outcome.delivered is False
    session.post.assert_not_called()


def test_weather_client_returns_first_condition() -> None:
    session = MagicMock()
    session.get.return_value = _http_response(payload={"weather": [{"main": "Clouds"}, {"main": "Rain"}]})
    client = WeatherClient("key", "Hiroshima", session=session)

    report = client.current()

    assert report.condition == "Clouds"
    assert report.error is None
    _, kwargs = session.get.call_args
    assert kwargs["params"] == {"q": "Hiroshima", "appid": "key"}


def test_weather_client_empty_list_is_unknown() -> None:
    session = MagicMock()
    session.get.return_value = _http_response(payload={"weather": []})

    assert WeatherClient("key", session=session).current().condition == UNKNOWN_WEATHER


def test_weather_client_failures_degrade_to_unknown() -> None:
    session = MagicMock()
    session.get.side_effect = requests.ConnectionError("down")

    report = WeatherClient("key", session=session).current()

    assert report.condition == UNKNOWN_WEATHER
    assert report.error


def test_weather_client_http_error_is_unknown() -> None:
    session = MagicMock()
    session.get.return_value = _http_response(status_code=401, payload={"cod": 401, "message": "Invalid API key"})

    report = WeatherClient("key", session=session).current()

    assert report.condition == UNKNOWN_WEATHER
    assert report.error


def test_weather_client_without_key_skips_request() -> None:
    session = MagicMock()

    report = WeatherClient(None, session=session).current()

    assert report.condition == UNKNOWN_WEATHER
    session.get.assert_not_called()

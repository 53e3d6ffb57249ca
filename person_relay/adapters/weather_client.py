"""Current-weather lookup used to annotate the detection list."""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional

import requests

LOGGER = logging.getLogger(__name__)

UNKNOWN_WEATHER = "Unknown"


@dataclass(frozen=True)
class WeatherReport:
    condition: str = UNKNOWN_WEATHER
    error: Optional[str] = None


class WeatherClient:
    """Fetch the main weather condition for a fixed city from OpenWeatherMap."""

    def __init__(
        self,
        api_key: Optional[str],
        city: str = "Hiroshima",
        *,
        url: str = "https://api.openweathermap.org/data/2.5/weather",
        timeout: Optional[float] = None,
        session: Optional[requests.Session] = None,
    ) -> None:
        self.api_key = api_key
        self.city = city
        self.url = url
        self.timeout = timeout
        self._session = session or requests.Session()

    def current(self) -> WeatherReport:
        if not self.api_key:
            return WeatherReport(error="weather API key not configured")

        try:
            response = self._session.get(
                self.url,
                params={"q": self.city, "appid": self.api_key},
                timeout=self.timeout,
            )
            response.raise_for_status()
            payload = response.json()
        except requests.RequestException as exc:
            return WeatherReport(error=f"failed to request weather info: {exc}")
        except ValueError as exc:
            return WeatherReport(error=f"failed to decode weather response: {exc}")

        conditions = payload.get("weather") if isinstance(payload, dict) else None
        if isinstance(conditions, list) and conditions:
            first = conditions[0]
            if isinstance(first, dict) and isinstance(first.get("main"), str) and first["main"]:
                return WeatherReport(condition=first["main"])
        LOGGER.debug("Weather response for %s carried no condition", self.city)
        return WeatherReport()

    def close(self) -> None:
        self._session.close()

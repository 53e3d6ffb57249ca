import json
import logging
import sys

from person_relay.app.settings import AppSettings


class JsonLineFormatter(logging.Formatter):
    """One JSON object per record; the message is escaped, so quotes in file names stay valid."""

    def format(self, record: logging.LogRecord) -> str:
        entry = {
            "time": self.formatTime(record),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        if record.exc_info:
            entry["exc_info"] = self.formatException(record.exc_info)
        return json.dumps(entry)


def setup_logging(settings: AppSettings, level: int = logging.INFO) -> None:
    if settings.log_format == "json":
        formatter: logging.Formatter = JsonLineFormatter()
    else:
        formatter = logging.Formatter("%(asctime)s - %(name)s - %(levelname)s - %(message)s")
    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(formatter)
    logging.basicConfig(level=level, handlers=[handler])

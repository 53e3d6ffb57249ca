import logging
from typing import Iterable, Optional

from person_relay.core.models import PredictionResponse


logger = logging.getLogger(__name__)

DEFAULT_SUBJECT_LABELS = ("person", "face")


def matched_label(
    response: PredictionResponse,
    subject_labels: Iterable[str] = DEFAULT_SUBJECT_LABELS,
) -> Optional[str]:
    """Return the first predicted category that names a subject of interest.

    Every class of every prediction is scanned in response order and the scan
    stops at the first hit. Labels compare case-insensitively, so ``Person``
    from the detector matches the configured ``person``.
    """

    wanted = {label.strip().lower() for label in subject_labels if label}
    for prediction in response.predictions:
        for predicted in prediction.classes:
            logger.debug("Detected %s (prob=%.2f) in %s", predicted.cat, predicted.prob, prediction.uri)
            if predicted.cat.strip().lower() in wanted:
                return predicted.cat
    return None


def process_predictions(
    response: PredictionResponse,
    subject_labels: Iterable[str] = DEFAULT_SUBJECT_LABELS,
) -> bool:
    return matched_label(response, subject_labels) is not None

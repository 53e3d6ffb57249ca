from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field


class DetectionRecord(BaseModel):
    model_config = ConfigDict(frozen=True)

    image: str
    detected_at: datetime


class BoundingBox(BaseModel):
    xmin: float = 0.0
    ymin: float = 0.0
    xmax: float = 0.0
    ymax: float = 0.0


class PredictedClass(BaseModel):
    bbox: BoundingBox = Field(default_factory=BoundingBox)
    prob: float = 0.0
    cat: str = ""
    last: Optional[bool] = None


class Prediction(BaseModel):
    uri: str = ""
    classes: List[PredictedClass] = Field(default_factory=list)
    images: List[str] = Field(default_factory=list)


class ResponseStatus(BaseModel):
    code: int = 0
    msg: str = ""


class ResponseHead(BaseModel):
    method: str = ""
    service: str = ""
    time: float = 0.0


class PredictionBody(BaseModel):
    predictions: List[Prediction] = Field(default_factory=list)


class PredictionResponse(BaseModel):
    """Decoded reply of the inference server's /predict call."""

    status: ResponseStatus = Field(default_factory=ResponseStatus)
    head: ResponseHead = Field(default_factory=ResponseHead)
    body: PredictionBody = Field(default_factory=PredictionBody)

    @property
    def predictions(self) -> List[Prediction]:
        return self.body.predictions

    @property
    def succeeded(self) -> bool:
        # a missing status block decodes to code 0, which is treated as success
        return self.status.code == 0 or 200 <= self.status.code < 300

from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, computed_field, field_validator
from pydantic.alias_generators import to_camel

DEFAULT_MIME_TYPE = "image/jpeg"


class ImageData(BaseModel):
    """An encoded image ready to be sent to the analysis service."""

    data: str  # base64, no data-URI prefix
    mime_type: str = DEFAULT_MIME_TYPE

    @property
    def data_uri(self) -> str:
        return f"data:{self.mime_type};base64,{self.data}"


class DiagnosisStatus(str, Enum):
    HEALTHY = "healthy"
    DISEASED = "diseased"


class AnalysisResult(BaseModel):
    """Structured diagnosis returned by the model.

    Field names on the wire are camelCase; missing or null fields come back
    as empty values rather than validation errors.
    """

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    disease_name: str = ""
    scientific_name: str = ""
    confidence: str = ""
    symptoms: list[str] = []
    causes: list[str] = []
    treatment: str = ""
    prevention: str = ""
    status: DiagnosisStatus | None = None

    @field_validator(
        "disease_name", "scientific_name", "confidence", "treatment", "prevention",
        mode="before",
    )
    @classmethod
    def _text(cls, v: Any) -> str:
        if v is None:
            return ""
        return v if isinstance(v, str) else str(v)

    @field_validator("symptoms", "causes", mode="before")
    @classmethod
    def _text_list(cls, v: Any) -> list[str]:
        if v is None:
            return []
        if isinstance(v, str):
            return [v] if v else []
        if isinstance(v, (list, tuple)):
            return [item if isinstance(item, str) else str(item) for item in v if item is not None]
        return [str(v)]

    @field_validator("status", mode="before")
    @classmethod
    def _status(cls, v: Any) -> DiagnosisStatus | None:
        if isinstance(v, str):
            try:
                return DiagnosisStatus(v.strip().lower())
            except ValueError:
                return None
        return v if isinstance(v, DiagnosisStatus) else None

    @computed_field
    @property
    def is_healthy(self) -> bool:
        if self.status is not None:
            return self.status is DiagnosisStatus.HEALTHY
        # Legacy replies carry no status, only the name.
        return "healthy" in self.disease_name.lower()

    @computed_field
    @property
    def status_label(self) -> str:
        return "Status: Optimal" if self.is_healthy else "Diagnosis: Critical"

    @property
    def is_empty(self) -> bool:
        return not any((
            self.disease_name, self.scientific_name, self.confidence,
            self.symptoms, self.causes, self.treatment, self.prevention,
        ))


class WorkflowState(str, Enum):
    IDLE = "idle"
    ANALYZING = "analyzing"
    READY = "ready"
    FAILED = "failed"


class WorkflowSnapshot(BaseModel):
    state: WorkflowState
    image: ImageData | None = None
    result: AnalysisResult | None = None
    error: str | None = None
    generation: int = 0


# ── API models ──


class AnalyzeRequest(BaseModel):
    image: str  # data URI or bare base64
    mime_type: str | None = None


class SetModelRequest(BaseModel):
    model: str


class ModelSettings(BaseModel):
    current_model: str
    available_models: list[str] = Field(default_factory=list)

"""Modelos del dominio (Pydantic v2).

Por qué Pydantic en el dominio:
- Nos da validación estricta y documentación autocontenida (Field) sin acoplar
  el Core a librerías de I/O.
- El resultado de una ejecución se serializa tal cual a JSON para el scheduler.

Nota:
- Estos modelos describen *qué* es la información, no *cómo* se obtiene.
"""

from __future__ import annotations

from datetime import datetime, timezone
from enum import Enum

from pydantic import BaseModel, Field
from pydantic.config import ConfigDict

from core.domain.errors import ErrorKind


class PlausibilityVerdict(str, Enum):
    WITHIN_RANGE = "within-range"
    SUSPICIOUSLY_LOW = "suspiciously-low"
    SUSPICIOUSLY_HIGH = "suspiciously-high"


class PipelineStage(str, Enum):
    """Estados del orquestador; `failed` es absorbente."""

    IDLE = "idle"
    FETCHING = "fetching"
    EXTRACTING = "extracting"
    VALIDATING = "validating"
    DELIVERING = "delivering"
    DONE = "done"
    FAILED = "failed"


class NormalizedJackpot(BaseModel):
    """Valor canónico del jackpot más su veredicto de plausibilidad.

    Por qué el veredicto viaja aquí:
    - Es una clasificación lateral (solo avisos); nunca una excepción.
    """

    model_config = ConfigDict(frozen=True)

    canonical: str = Field(
        ...,
        min_length=1,
        description="Valor normalizado con sufijo de moneda, p.ej. '5 000 000 лв.'.",
    )
    verdict: PlausibilityVerdict = Field(
        default=PlausibilityVerdict.WITHIN_RANGE,
        description="Clasificación de magnitud (advisory).",
    )
    magnitude: float | None = Field(
        default=None,
        description="Magnitud numérica interpretada; None si no fue parseable.",
    )


class FailureReport(BaseModel):
    """Reporte estructurado del primer fallo de una ejecución."""

    kind: ErrorKind = Field(..., description="Tipo de error.")
    message: str = Field(..., min_length=1, description="Mensaje legible.")
    stage: PipelineStage = Field(..., description="Etapa donde se originó el fallo.")
    status_code: int | None = Field(
        default=None,
        description="Status HTTP aguas arriba (si aplica).",
    )
    error_code: str | None = Field(
        default=None,
        description="Clasificación/código del fallo de red (si aplica).",
    )
    attempts: int = Field(
        default=1,
        ge=0,
        description="Intentos consumidos en la etapa fallida.",
    )


class RunOutcome(BaseModel):
    """Resultado final de una pasada del pipeline."""

    stage: PipelineStage = Field(..., description="Estado terminal: done o failed.")
    jackpot: NormalizedJackpot | None = Field(
        default=None,
        description="Valor validado (presente si se superó la validación).",
    )
    message: str | None = Field(
        default=None,
        description="Texto de la notificación (presente si se llegó a formatear).",
    )
    failure: FailureReport | None = Field(
        default=None,
        description="Reporte de fallo (presente solo si stage == failed).",
    )
    finished_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        description="Momento de finalización (UTC).",
    )

    @property
    def ok(self) -> bool:
        return self.stage is PipelineStage.DONE

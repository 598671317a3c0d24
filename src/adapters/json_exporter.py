"""Exportación JSON del resultado de una ejecución.

Por qué JSON:
- El scheduler externo (cron/CI) puede registrar o alertar sobre el reporte
  estructurado sin parsear la salida de Rich.
"""

from __future__ import annotations

import json
from pathlib import Path

from core.domain.models import RunOutcome


def outcome_to_json(outcome: RunOutcome) -> str:
    """Serializa `RunOutcome` a JSON UTF-8 con formato estable."""

    payload = outcome.model_dump(mode="json")
    return json.dumps(payload, ensure_ascii=False, indent=2, sort_keys=True)


def export_outcome_json(*, outcome: RunOutcome, output_path: Path) -> Path:
    output_path.parent.mkdir(parents=True, exist_ok=True)
    output_path.write_text(outcome_to_json(outcome) + "\n", encoding="utf-8")
    return output_path

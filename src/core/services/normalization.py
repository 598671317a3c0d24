"""Normalización del texto del jackpot.

Convierte el texto crudo extraído de la página en un valor canónico
("5 000 000 лв.") y lo clasifica contra umbrales de plausibilidad.

Reglas (el orden importa):
1. Vacío/ausente -> `empty-input`.
2. Cortar en la primera aparición de "лева" (si no aparece, no es error).
3. Colapsar espacios y recortar.
4. Añadir " лв." exactamente una vez.
5. Sin dígitos -> `no-digits`.
6. Veredicto de magnitud (solo aviso, nunca bloquea).
"""

from __future__ import annotations

import re

from core.domain.errors import ErrorKind, NormalizationError
from core.domain.models import NormalizedJackpot, PlausibilityVerdict

MARKER_WORD = "лева"
CURRENCY_ABBREVIATION = "лв."
CURRENCY_SUFFIX = f" {CURRENCY_ABBREVIATION}"

LOW_BOUND = 1_000
HIGH_BOUND = 100_000_000

_WHITESPACE_RE = re.compile(r"\s+")
_DIGIT_RE = re.compile(r"\d")
_NON_NUMERIC_RE = re.compile(r"[^\d.]")


def classify_magnitude(canonical: str) -> tuple[PlausibilityVerdict, float | None]:
    """Veredicto + magnitud; si no se puede parsear, within-range y None."""

    # El punto de "лв." no es separador decimal.
    amount = canonical.removesuffix(CURRENCY_SUFFIX)
    numeric = _NON_NUMERIC_RE.sub("", amount)
    try:
        magnitude = float(numeric)
    except ValueError:
        return PlausibilityVerdict.WITHIN_RANGE, None

    if magnitude < LOW_BOUND:
        return PlausibilityVerdict.SUSPICIOUSLY_LOW, magnitude
    if magnitude > HIGH_BOUND:
        return PlausibilityVerdict.SUSPICIOUSLY_HIGH, magnitude
    return PlausibilityVerdict.WITHIN_RANGE, magnitude


def canonicalize(raw: str | None) -> str:
    if not raw:
        raise NormalizationError(ErrorKind.EMPTY_INPUT, "Raw jackpot value is empty", raw)

    text = raw.split(MARKER_WORD, 1)[0]
    text = _WHITESPACE_RE.sub(" ", text).strip()

    # Un valor ya canónico no debe acabar con dos sufijos.
    if text.endswith(CURRENCY_ABBREVIATION):
        text = text[: -len(CURRENCY_ABBREVIATION)].rstrip()

    canonical = f"{text}{CURRENCY_SUFFIX}".strip()

    if not _DIGIT_RE.search(canonical):
        raise NormalizationError(
            ErrorKind.NO_DIGITS,
            f'Cleaned value contains no digits: "{canonical}"',
            raw,
        )
    return canonical


def normalize_jackpot(raw: str | None) -> NormalizedJackpot:
    canonical = canonicalize(raw)
    verdict, magnitude = classify_magnitude(canonical)
    return NormalizedJackpot(canonical=canonical, verdict=verdict, magnitude=magnitude)

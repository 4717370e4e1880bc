"""
Validadores y normalizadores compartidos (teléfonos, slugs, montos)
"""
import re
import unicodedata
from decimal import Decimal, ROUND_HALF_UP
from typing import Optional

DEFAULT_COUNTRY_CODE = "233"  # Ghana

# Prefijos internacionales que se aceptan sin '+', con su longitud mínima
_KNOWN_PREFIXES = {
    "233": 12,  # Ghana
    "234": 13,  # Nigeria
    "254": 12,  # Kenia
}

TWO_PLACES = Decimal("0.01")


def format_to_e164(phone: Optional[str], default_country_code: str = DEFAULT_COUNTRY_CODE) -> Optional[str]:
    """
    Normaliza un teléfono a formato E.164.

    Formatos aceptados:
    - +XXXXXXXXX (9 a 15 dígitos después del +)
    - 233XXXXXXXXX / 234XXXXXXXXXX / 254XXXXXXXXX (se agrega '+')
    - 0XXXXXXXXX o XXXXXXXXX (número local, se antepone el código por defecto)

    Retorna None si el número no es válido.
    """
    if not phone:
        return None

    cleaned = re.sub(r'[^\d+]', '', str(phone))
    if not cleaned:
        return None

    if cleaned.startswith('+'):
        digits = cleaned[1:]
        if digits.isdigit() and 9 <= len(digits) <= 15:
            return cleaned
        return None

    if not cleaned.isdigit():
        return None

    for prefix, min_length in _KNOWN_PREFIXES.items():
        if cleaned.startswith(prefix) and len(cleaned) >= min_length:
            return f"+{cleaned}"

    local = cleaned[1:] if cleaned.startswith('0') else cleaned
    if 9 <= len(local) <= 10:
        return f"+{default_country_code}{local}"

    return None


def validate_phone(phone: str) -> bool:
    """True si el teléfono se puede normalizar a E.164."""
    return format_to_e164(phone) is not None


def slugify(value: str) -> str:
    """Convierte un nombre de empresa a slug url-safe."""
    normalized = unicodedata.normalize("NFKD", value).encode("ascii", "ignore").decode("ascii")
    slug = re.sub(r'[^a-zA-Z0-9]+', '-', normalized).strip('-').lower()
    return slug or "workspace"


def money(value) -> Decimal:
    """Redondea a 2 decimales (half-up). Acepta None, int, float, str o Decimal."""
    if value is None:
        return Decimal("0.00")
    if not isinstance(value, Decimal):
        value = Decimal(str(value))
    return value.quantize(TWO_PLACES, rounding=ROUND_HALF_UP)

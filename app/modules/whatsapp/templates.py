"""
Plantillas de WhatsApp aprobadas en Meta Business Manager.

Los parámetros se envían en orden como {{1}}, {{2}}, ... del cuerpo.
"""
from decimal import Decimal
from typing import Any, Dict, List

from app.core.config import settings

TEMPLATES: Dict[str, Dict[str, Any]] = {
    "invoice_notification": {
        "language": "en",
        "parameters": ["customer_name", "invoice_number", "amount", "payment_link"],
        "example": "Hello {{1}}, your invoice {{2}} for {{3}} is ready. Pay online: {{4}}",
    },
    "quote_delivery": {
        "language": "en",
        "parameters": ["customer_name", "quote_number", "title", "quote_link"],
        "example": "Hi {{1}}, your quote {{2}} for {{3}} is ready. View here: {{4}}",
    },
    "order_confirmation": {
        "language": "en",
        "parameters": ["customer_name", "order_number"],
        "example": "Thank you {{1}}! Your order {{2}} has been confirmed.",
    },
    "payment_reminder": {
        "language": "en",
        "parameters": ["invoice_number", "amount", "payment_link"],
        "example": "Reminder: Invoice {{1}} for {{2}} is overdue. Please pay: {{3}}",
    },
    "low_stock_alert": {
        "language": "en",
        "parameters": ["product_name", "current_stock", "reorder_level"],
        "example": "Alert: {{1}} is running low. Current stock: {{2}}, Reorder level: {{3}}",
    },
}


def format_currency(amount, currency: str = None) -> str:
    """GHS 1,234.56"""
    currency = currency or settings.DEFAULT_CURRENCY
    try:
        value = Decimal(str(amount if amount is not None else 0))
    except ArithmeticError:
        value = Decimal("0")
    return f"{currency} {value:,.2f}"


def validate_parameters(template_name: str, parameters: List[Any]) -> None:
    """Lanza ValueError si la plantilla no existe o la cantidad de parámetros no coincide."""
    template = TEMPLATES.get(template_name)
    if template is None:
        raise ValueError(f"Unknown WhatsApp template: {template_name}")
    expected = len(template["parameters"])
    if len(parameters) != expected:
        raise ValueError(
            f"Template {template_name} expects {expected} parameters, got {len(parameters)}"
        )


def build_template_component(parameters: List[Any]) -> List[Dict[str, Any]]:
    return [{
        "type": "body",
        "parameters": [{"type": "text", "text": str(p)} for p in parameters],
    }]

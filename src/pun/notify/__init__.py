from .base import Notifier
from .formatter import build_payload, format_update_text
from .webhook import WebhookNotifier

__all__ = [
    "Notifier",
    "WebhookNotifier",
    "build_payload",
    "format_update_text",
]

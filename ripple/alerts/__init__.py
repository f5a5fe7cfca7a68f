"""Alert delivery."""

from .notifier import EmailJSNotifier, Notifier, format_alert_message

__all__ = ["EmailJSNotifier", "Notifier", "format_alert_message"]

"""
In-memory alerting state (cooldown gate + dispatch history).
"""

from .cooldown import CooldownTracker
from .alert_history import AlertDispatch, AlertHistoryBuffer, MonitorStatus

__all__ = [
    "CooldownTracker",
    "AlertDispatch",
    "AlertHistoryBuffer",
    "MonitorStatus",
]

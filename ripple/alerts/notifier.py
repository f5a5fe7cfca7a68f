"""Alert message formatting and EmailJS delivery."""
from typing import Optional, Protocol, Sequence
import logging

import requests

from ripple.analysis.scoring import AnomalyRecord, ScoringConstants
from ripple.config import EMAILJS_CONFIG, HTTP_TIMEOUT_SECONDS

logger = logging.getLogger(__name__)


class Notifier(Protocol):
    def send(self, message: str, recipient: str) -> bool:
        ...


def format_alert_message(
    cohort_key: str,
    records: Sequence[AnomalyRecord],
    reference_price: Optional[float],
    constants: Optional[ScoringConstants] = None,
    top_n: int = 5,
) -> str:
    """Human-readable summary of one cohort's anomalies, strongest first."""
    constants = constants or ScoringConstants()
    price_text = f"{reference_price:,.2f}" if reference_price is not None else "n/a"

    lines = [
        "OPTIONS ANOMALY ALERT",
        f"Expiry: {cohort_key}",
        f"Reference price: {price_text}",
        "",
        f"{len(records)} anomalies scored at or above {constants.score_threshold:.2f}",
        "",
        f"Top {min(top_n, len(records))}:",
    ]

    for i, r in enumerate(records[:top_n], start=1):
        lines.extend([
            f"{i}. {r.symbol} [{r.anomaly_type.value}, {r.direction.value}]",
            f"   score={r.score:.2f} price_z={r.price_z:.2f} volume_z={r.volume_z:.2f} oi_z={r.oi_z:.2f}",
            f"   hours_to_expiry={r.hours_to_expiry:.1f} mark={r.mark_price:.4f} volume={r.volume:,.0f}",
        ])

    return "\n".join(lines)


class EmailJSNotifier:
    """Send alert text through the EmailJS REST endpoint."""

    def __init__(
        self,
        service_id: str = EMAILJS_CONFIG['service_id'],
        template_id: str = EMAILJS_CONFIG['template_id'],
        public_key: str = EMAILJS_CONFIG['public_key'],
        url: str = EMAILJS_CONFIG['url'],
        timeout: float = HTTP_TIMEOUT_SECONDS,
        session: Optional[requests.Session] = None,
    ):
        self.service_id = service_id
        self.template_id = template_id
        self.public_key = public_key
        self.url = url
        self.timeout = timeout
        self.session = session or requests.Session()

    def send(self, message: str, recipient: str) -> bool:
        """Returns True only when EmailJS accepted the message."""
        if not recipient:
            logger.warning("Recipient not configured, skipping alert")
            return False

        payload = {
            "service_id": self.service_id,
            "template_id": self.template_id,
            "user_id": self.public_key,
            "template_params": {
                "to_email": recipient,
                "from_name": "Options Anomaly Monitor",
                "message": message,
            },
        }

        try:
            resp = self.session.post(self.url, json=payload, timeout=self.timeout)
        except requests.RequestException as e:
            logger.error(f"Failed to send alert to {recipient}: {e}")
            return False

        if not resp.ok:
            logger.error(f"EmailJS API error {resp.status_code}: {resp.text}")
            return False

        logger.info(f"Alert sent to {recipient}")
        return True

# app/services/notifier.py
"""
Email notifier: tells the fleet manager when a vehicle is added.

Endpoint: POST {NOTIFY_API_URL}/emails  (Resend-compatible JSON API)
Auth:     Authorization: Bearer {NOTIFY_API_KEY}

Notifications are best effort: a failed send is logged and never reaches
the caller of the vehicle API.
"""

import httpx
from html import escape
from typing import Optional
from app.config import Settings
from app.utils.logger import get_logger

logger = get_logger(__name__)

EMAILS_PATH = "/emails"


class EmailNotifier:
    def __init__(self, config: Settings, transport: Optional[httpx.AsyncBaseTransport] = None):
        self.config = config
        self._transport = transport   # tests inject httpx.MockTransport here

    @property
    def enabled(self) -> bool:
        return bool(self.config.NOTIFY_API_KEY)

    async def send(self, sender: str, to: str, subject: str, html: str) -> bool:
        """
        Send one email. Returns True if the provider accepted it.
        Single attempt, bounded by NOTIFY_TIMEOUT_SECONDS.
        """
        url = f"{self.config.NOTIFY_API_URL.rstrip('/')}{EMAILS_PATH}"
        headers = {"Authorization": f"Bearer {self.config.NOTIFY_API_KEY}"}
        payload = {"from": sender, "to": [to], "subject": subject, "html": html}

        async with httpx.AsyncClient(timeout=self.config.NOTIFY_TIMEOUT_SECONDS,
                                     transport=self._transport) as client:
            response = await client.post(url, json=payload, headers=headers)
        if response.is_success:
            return True
        logger.warning(f"[NOTIFY] Provider returned HTTP {response.status_code}: {response.text[:200]}")
        return False

    async def notify_vehicle_created(self, vehicle: dict) -> bool:
        """Background task run after a vehicle is created. Never raises."""
        reg = vehicle.get("reg_number")
        if not self.enabled:
            logger.info(f"[NOTIFY] Email disabled (no NOTIFY_API_KEY), skipping {reg}")
            return False

        subject, html = build_vehicle_created_email(vehicle)
        try:
            sent = await self.send(self.config.NOTIFY_FROM, self.config.NOTIFY_TO, subject, html)
        except Exception as e:
            logger.error(f"[NOTIFY] Failed to send email for {reg}: {e}")
            return False

        if sent:
            logger.info(f"[NOTIFY] Creation email sent for {reg}")
        return sent


def build_vehicle_created_email(vehicle: dict) -> tuple[str, str]:
    """Subject and HTML body for a new-vehicle notification."""
    reg = str(vehicle.get("reg_number", ""))
    subject = f"🚛 New vehicle added: {reg}"
    html = (
        "<h2>New vehicle added to the fleet</h2>"
        f"<p><strong>Registration:</strong> {escape(reg)}</p>"
        f"<p><strong>Make:</strong> {escape(str(vehicle.get('make', '')))}</p>"
        f"<p><strong>MOT expiry:</strong> {escape(str(vehicle.get('mot_expiry', '')))}</p>"
    )
    return subject, html

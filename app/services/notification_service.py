# app/services/notification_service.py
"""
Notification dispatcher: SMS via the Twilio REST API, e-mail via SMTP.

send() never raises: every failure comes back as DispatchResult(ok=False)
carrying a DispatchError, and the caller decides what to do with it (all
current callers log and move on). A disabled or unconfigured channel logs the
message instead of sending it and reports ok=True, delivered=False.
"""

import asyncio
import smtplib
from dataclasses import dataclass
from email.message import EmailMessage
from enum import Enum
from typing import Optional
import httpx
from app.config import settings as default_settings
from app.exceptions import DispatchError
from app.utils.logger import get_logger, mask_mobile

logger = get_logger(__name__)


class Channel(str, Enum):
    SMS = "sms"
    EMAIL = "email"


@dataclass
class Attachment:
    filename: str
    content: str
    mime_subtype: str = "csv"


@dataclass
class DispatchResult:
    ok: bool
    delivered: bool = False
    error: Optional[DispatchError] = None


class NotificationDispatcher:
    def __init__(self, config=None, transport: Optional[httpx.AsyncBaseTransport] = None):
        self.config = config or default_settings
        self._transport = transport   # injected in tests (httpx.MockTransport)

    @property
    def sms_enabled(self) -> bool:
        return self.config.SMS_ENABLED

    @property
    def email_enabled(self) -> bool:
        return self.config.EMAIL_ENABLED

    async def send(self, channel: Channel, address: str, message: str,
                   subject: Optional[str] = None, html: bool = False,
                   attachments: Optional[list[Attachment]] = None) -> DispatchResult:
        try:
            if channel == Channel.SMS:
                return await self._send_sms(address, message)
            if channel == Channel.EMAIL:
                return await self._send_email(address, message, subject, html, attachments or [])
            raise DispatchError(f"Unsupported channel: {channel}")
        except DispatchError as e:
            return DispatchResult(ok=False, error=e)
        except httpx.HTTPError as e:
            return DispatchResult(ok=False, error=DispatchError(f"SMS transport error: {e}"))
        except (smtplib.SMTPException, OSError) as e:
            return DispatchResult(ok=False, error=DispatchError(f"SMTP error: {e}"))
        except Exception as e:
            logger.error(f"Unexpected {channel} dispatch error: {e}", exc_info=True)
            return DispatchResult(ok=False, error=DispatchError(f"{type(e).__name__}: {e}"))

    # ── SMS ───────────────────────────────────────────────────────────────
    def international(self, mobile: str) -> str:
        mobile = str(mobile).strip()
        return mobile if mobile.startswith("+") else f"{self.config.SMS_COUNTRY_CODE}{mobile}"

    async def _send_sms(self, mobile: str, body: str) -> DispatchResult:
        if not self.sms_enabled:
            logger.info(f"[SMS off] to {mask_mobile(mobile)}: {body}")
            return DispatchResult(ok=True, delivered=False)

        cfg = self.config
        url = f"{cfg.TWILIO_API_URL}/Accounts/{cfg.TWILIO_SID}/Messages.json"
        async with httpx.AsyncClient(
            auth=(cfg.TWILIO_SID, cfg.TWILIO_TOKEN),
            timeout=cfg.DISPATCH_TIMEOUT_SECONDS,
            transport=self._transport,
        ) as client:
            response = await client.post(url, data={
                "To": self.international(mobile),
                "From": cfg.TWILIO_FROM,
                "Body": body,
            })
        if response.status_code >= 400:
            raise DispatchError(f"Twilio returned HTTP {response.status_code}")
        logger.debug(f"SMS sent to {mask_mobile(mobile)}")
        return DispatchResult(ok=True, delivered=True)

    # ── Email ─────────────────────────────────────────────────────────────
    async def _send_email(self, to: str, body: str, subject: Optional[str], html: bool,
                          attachments: list[Attachment]) -> DispatchResult:
        if not self.email_enabled:
            logger.info(f"[Email off] to {to} | {subject}")
            return DispatchResult(ok=True, delivered=False)

        msg = EmailMessage()
        msg["From"] = self.config.SMTP_USER
        msg["To"] = to
        msg["Subject"] = subject or "Parking notification"
        if html:
            msg.set_content("This message requires an HTML-capable mail client.")
            msg.add_alternative(body, subtype="html")
        else:
            msg.set_content(body)
        for a in attachments:
            msg.add_attachment(a.content.encode("utf-8"), maintype="text",
                               subtype=a.mime_subtype, filename=a.filename)

        # smtplib blocks; run it off the event loop
        await asyncio.to_thread(self._smtp_send, msg)
        logger.debug(f"Email sent to {to} | {msg['Subject']}")
        return DispatchResult(ok=True, delivered=True)

    def _smtp_send(self, msg: EmailMessage):
        cfg = self.config
        with smtplib.SMTP(cfg.SMTP_HOST, cfg.SMTP_PORT, timeout=cfg.DISPATCH_TIMEOUT_SECONDS) as smtp:
            smtp.starttls()
            smtp.login(cfg.SMTP_USER, cfg.SMTP_PASSWORD)
            smtp.send_message(msg)

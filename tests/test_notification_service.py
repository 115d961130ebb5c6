"""Unit tests for the SMS / e-mail dispatcher."""

import smtplib
import httpx
import pytest
from unittest.mock import patch
from app.config import Settings
from app.exceptions import DispatchError
from app.services.notification_service import Attachment, Channel, NotificationDispatcher


def sms_settings(**kw):
    return Settings(SEND_SMS=True, TWILIO_SID="AC123", TWILIO_TOKEN="secret",
                    TWILIO_FROM="+15550001111", **kw)


def email_settings(**kw):
    return Settings(SEND_EMAIL=True, SMTP_USER="lot@example.com", SMTP_PASSWORD="pw", **kw)


class TestSms:
    @pytest.mark.asyncio
    async def test_disabled_channel_logs_only(self):
        dispatcher = NotificationDispatcher(Settings(SEND_SMS=False))
        result = await dispatcher.send(Channel.SMS, "9876543210", "hello")
        assert result.ok is True and result.delivered is False

    @pytest.mark.asyncio
    async def test_missing_credentials_logs_only(self):
        dispatcher = NotificationDispatcher(Settings(SEND_SMS=True, TWILIO_SID=None))
        result = await dispatcher.send(Channel.SMS, "9876543210", "hello")
        assert result.ok is True and result.delivered is False

    @pytest.mark.asyncio
    async def test_posts_to_twilio(self):
        seen = {}

        def handler(request: httpx.Request):
            seen["url"] = str(request.url)
            seen["body"] = request.content.decode()
            seen["auth"] = request.headers.get("authorization", "")
            return httpx.Response(201, json={"sid": "SM1"})

        dispatcher = NotificationDispatcher(sms_settings(), transport=httpx.MockTransport(handler))
        result = await dispatcher.send(Channel.SMS, "9876543210", "Your parking OTP is 123456")

        assert result.ok and result.delivered
        assert seen["url"].endswith("/Accounts/AC123/Messages.json")
        assert "To=%2B919876543210" in seen["body"]
        assert seen["auth"].startswith("Basic ")

    @pytest.mark.asyncio
    async def test_twilio_error_status(self):
        transport = httpx.MockTransport(lambda req: httpx.Response(400, json={"code": 21211}))
        dispatcher = NotificationDispatcher(sms_settings(), transport=transport)
        result = await dispatcher.send(Channel.SMS, "123", "hi")
        assert result.ok is False
        assert isinstance(result.error, DispatchError)
        assert "400" in str(result.error)

    @pytest.mark.asyncio
    async def test_network_error_is_returned_not_raised(self):
        def handler(request):
            raise httpx.ConnectError("unreachable", request=request)

        dispatcher = NotificationDispatcher(sms_settings(), transport=httpx.MockTransport(handler))
        result = await dispatcher.send(Channel.SMS, "9876543210", "hi")
        assert result.ok is False
        assert isinstance(result.error, DispatchError)

    @pytest.mark.asyncio
    async def test_unexpected_transport_exception_is_returned_not_raised(self):
        def handler(request):
            raise RuntimeError("transport blew up")

        dispatcher = NotificationDispatcher(sms_settings(), transport=httpx.MockTransport(handler))
        result = await dispatcher.send(Channel.SMS, "9876543210", "hi")
        assert result.ok is False
        assert isinstance(result.error, DispatchError)
        assert "RuntimeError" in str(result.error)

    def test_international_prefix(self):
        dispatcher = NotificationDispatcher(sms_settings(SMS_COUNTRY_CODE="+44"))
        assert dispatcher.international("7700900123") == "+447700900123"
        assert dispatcher.international("+15551234") == "+15551234"


class TestEmail:
    @pytest.mark.asyncio
    async def test_disabled_channel_logs_only(self):
        dispatcher = NotificationDispatcher(Settings(SEND_EMAIL=False))
        result = await dispatcher.send(Channel.EMAIL, "ops@example.com", "<p>x</p>", html=True)
        assert result.ok is True and result.delivered is False

    @pytest.mark.asyncio
    async def test_sends_with_attachment(self):
        with patch("app.services.notification_service.smtplib.SMTP") as smtp_cls:
            dispatcher = NotificationDispatcher(email_settings())
            result = await dispatcher.send(
                Channel.EMAIL, "ops@example.com", "See attached CSV", subject="Report",
                attachments=[Attachment(filename="report.csv", content='"ID"\n')],
            )

        assert result.ok and result.delivered
        smtp = smtp_cls.return_value.__enter__.return_value
        smtp.login.assert_called_once_with("lot@example.com", "pw")
        msg = smtp.send_message.call_args[0][0]
        assert msg["To"] == "ops@example.com"
        assert msg["Subject"] == "Report"
        assert [a.get_filename() for a in msg.iter_attachments()] == ["report.csv"]

    @pytest.mark.asyncio
    async def test_smtp_failure_is_returned_not_raised(self):
        with patch("app.services.notification_service.smtplib.SMTP") as smtp_cls:
            smtp_cls.return_value.__enter__.return_value.login.side_effect = \
                smtplib.SMTPAuthenticationError(535, b"bad credentials")
            dispatcher = NotificationDispatcher(email_settings())
            result = await dispatcher.send(Channel.EMAIL, "ops@example.com", "hi")

        assert result.ok is False
        assert isinstance(result.error, DispatchError)

    @pytest.mark.asyncio
    async def test_encoding_error_is_returned_not_raised(self):
        with patch("app.services.notification_service.smtplib.SMTP") as smtp_cls:
            smtp_cls.return_value.__enter__.return_value.send_message.side_effect = \
                UnicodeEncodeError("ascii", "ü", 0, 1, "ordinal not in range(128)")
            dispatcher = NotificationDispatcher(email_settings())
            result = await dispatcher.send(Channel.EMAIL, "ops@example.com", "hi")

        assert result.ok is False
        assert "UnicodeEncodeError" in str(result.error)

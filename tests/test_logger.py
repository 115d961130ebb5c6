"""Unit tests for logging helpers."""

from app.utils.logger import get_logger, mask_mobile


class TestMaskMobile:
    def test_keeps_last_four_digits(self):
        assert mask_mobile("9876543210") == "******3210"

    def test_short_and_empty(self):
        assert mask_mobile("123") == "***"
        assert mask_mobile(None) == ""


def test_get_logger_is_named():
    assert get_logger("app.services.otp_service").name == "app.services.otp_service"

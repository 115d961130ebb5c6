"""Unit tests for the check-in lifecycle."""

import pytest
from datetime import timedelta
from unittest.mock import MagicMock
from app.exceptions import (
    DispatchError, InvalidCode, NotRequested, StoreIOError, ValidationError,
)
from app.services.checkin_service import CheckInService, parse_amount, parse_duration
from app.services.notification_service import Channel, DispatchResult
from app.services.otp_service import OtpStore, OtpVerifier

MOBILE = "9876543210"


@pytest.fixture
def verifier(store, dispatcher, clock):
    return OtpVerifier(OtpStore(store), dispatcher, clock=clock, code_factory=lambda: "482913")


@pytest.fixture
def service(store, verifier, dispatcher, clock):
    return CheckInService(store, verifier, dispatcher, clock=clock, operator_email="ops@lot.test")


async def check_in(service, **overrides):
    args = dict(vehicle_no="mh12ab1234", mobile=MOBILE, duration_hours=2,
                vehicle_type="car", amount=50, code="482913", note=None)
    args.update(overrides)
    return await service.check_in(**args)


class TestParsing:
    @pytest.mark.parametrize("raw,expected", [(None, 1.0), ("", 1.0), ("abc", 1.0), (0, 1.0),
                                              (-3, 1.0), ("2", 2.0), (1.5, 1.5)])
    def test_duration(self, raw, expected):
        assert parse_duration(raw) == expected

    @pytest.mark.parametrize("raw", ["-1", "ten", "nan", "inf"])
    def test_bad_amount(self, raw):
        with pytest.raises(ValidationError):
            parse_amount(raw)

    def test_amount_coerced(self):
        assert parse_amount("50") == 50.0
        assert parse_amount(0) == 0.0


class TestCheckInService:
    @pytest.mark.asyncio
    async def test_example_scenario(self, service, verifier, store, clock):
        await verifier.request_code(MOBILE)
        with pytest.raises(InvalidCode):
            await check_in(service, code="000000")
        assert verifier.otps.get(MOBILE).attempts == 1

        rec = await check_in(service)
        assert rec.vehicle_no == "MH12AB1234"
        assert rec.paid_at == clock()
        assert rec.expires_at - rec.paid_at == timedelta(hours=2)
        assert rec.reminder_sent is False and rec.overstay_notified is False
        assert rec.amount == 50.0
        assert store.read_all() == [rec]

    @pytest.mark.asyncio
    async def test_fractional_and_default_duration(self, service, verifier):
        await verifier.request_code(MOBILE)
        rec = await check_in(service, duration_hours=0.5)
        assert rec.expires_at - rec.paid_at == timedelta(minutes=30)

        await verifier.request_code(MOBILE)
        rec = await check_in(service, duration_hours=None)
        assert rec.expires_at - rec.paid_at == timedelta(hours=1)

    @pytest.mark.asyncio
    @pytest.mark.parametrize("field", ["vehicle_no", "mobile", "vehicle_type", "amount", "code"])
    async def test_missing_field(self, service, verifier, field):
        await verifier.request_code(MOBILE)
        with pytest.raises(ValidationError, match="Missing fields"):
            await check_in(service, **{field: ""})
        # The code was not touched
        assert verifier.otps.get(MOBILE).attempts == 0

    @pytest.mark.asyncio
    async def test_not_requested_propagates(self, service, store):
        with pytest.raises(NotRequested):
            await check_in(service)
        assert store.read_all() == []

    @pytest.mark.asyncio
    async def test_code_is_single_use(self, service, verifier):
        await verifier.request_code(MOBILE)
        await check_in(service)
        with pytest.raises(NotRequested):
            await check_in(service)

    @pytest.mark.asyncio
    async def test_sends_confirmation_and_summary(self, service, verifier, dispatcher):
        await verifier.request_code(MOBILE)
        dispatcher.send.reset_mock()
        rec = await check_in(service, note="near gate")

        calls = dispatcher.send.call_args_list
        assert len(calls) == 2
        assert calls[0][0][0] == Channel.SMS and calls[0][0][1] == MOBILE
        assert calls[1][0][0] == Channel.EMAIL and calls[1][0][1] == "ops@lot.test"
        assert rec.id in calls[1][0][2]

    @pytest.mark.asyncio
    async def test_dispatch_failure_keeps_record(self, service, verifier, dispatcher, store):
        await verifier.request_code(MOBILE)
        dispatcher.send.return_value = DispatchResult(ok=False, error=DispatchError("twilio down"))
        rec = await check_in(service)
        assert store.read_all() == [rec]

    @pytest.mark.asyncio
    async def test_store_failure_surfaces(self, verifier, dispatcher, clock):
        broken = MagicMock()
        broken.append.side_effect = StoreIOError()
        service = CheckInService(broken, verifier, dispatcher, clock=clock)
        await verifier.request_code(MOBILE)
        dispatcher.send.reset_mock()
        with pytest.raises(StoreIOError):
            await check_in(service)
        dispatcher.send.assert_not_called()

    @pytest.mark.asyncio
    async def test_raising_dispatcher_does_not_surface(self, service, verifier, dispatcher, store):
        await verifier.request_code(MOBILE)
        dispatcher.send.side_effect = RuntimeError("smtp boom")

        rec = await check_in(service)

        assert store.read_all() == [rec]
        assert dispatcher.send.await_count == 3   # OTP + confirmation + summary

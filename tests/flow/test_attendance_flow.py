from __future__ import annotations

import asyncio
from datetime import datetime

import pytest

from src.geo_attendance.geo_attendance.attendance.model import AttendanceDayState
from src.geo_attendance.geo_attendance.core.enums import AttendanceAction, FlowState
from src.geo_attendance.geo_attendance.core.exceptions import (
    FlowStateError,
    GeocodingFailed,
    JustificationMissing,
    LocationTimeout,
    PermissionDenied,
    PositionUnavailable,
    SubmissionFailed,
    ValidationError,
)
from src.geo_attendance.geo_attendance.flow.machine import AttendanceFlowController
from src.geo_attendance.geo_attendance.geofence.model import GeofenceConfig, GeoPoint
from src.geo_attendance.geo_attendance.location.model import PlatformLocationError
from src.geo_attendance.geo_attendance.location.probe import LocationProbe

CENTER = GeoPoint(latitude=25.6146836, longitude=85.1126175, accuracy=5.0)
FAR = GeoPoint(latitude=CENTER.latitude + 200 / 111_194.93, longitude=CENTER.longitude, accuracy=20.0)
MORNING = datetime(2025, 1, 6, 9, 0, 0)
EVENING = datetime(2025, 1, 6, 18, 0, 0)


class ScriptedProvider:
    """Replays one result per call: a GeoPoint or a platform error code."""

    def __init__(self, *results):
        self.results = list(results)
        self.calls = []

    async def get_current_position(self, options):
        self.calls.append(options)
        result = self.results.pop(0)
        if isinstance(result, int):
            raise PlatformLocationError(result)
        return result


class FakeHrms:
    """In-memory server: status reads and punches against one day."""

    def __init__(self, state: AttendanceDayState | None = None, *, fail_with: Exception | None = None):
        self.state = state or AttendanceDayState()
        self.fail_with = fail_with
        self.status_calls = 0
        self.check_ins = []
        self.check_outs = []
        self.gate: asyncio.Event | None = None
        self.submitting = None

    async def get_today_status(self):
        self.status_calls += 1
        return self.state

    async def _wait_gate(self):
        if self.gate is not None:
            self.submitting.set()
            await self.gate.wait()
        if self.fail_with is not None:
            raise self.fail_with

    async def record_check_in(self, submission):
        await self._wait_gate()
        self.check_ins.append(submission)
        self.state = AttendanceDayState(is_checked_in=True, check_in_time=MORNING)
        return self.state

    async def record_check_out(self, submission):
        await self._wait_gate()
        self.check_outs.append(submission)
        self.state = AttendanceDayState(is_checked_in=False, check_in_time=MORNING, check_out_time=EVENING)
        return self.state


class FakeGeocoder:
    def __init__(self, name="Patna Office", *, error=None, delay=0.0):
        self.name = name
        self.error = error
        self.delay = delay
        self.calls = []

    async def reverse_geocode(self, latitude, longitude):
        self.calls.append((latitude, longitude))
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.error is not None:
            raise self.error
        return self.name


def office(**overrides) -> GeofenceConfig:
    values = dict(center_latitude=CENTER.latitude, center_longitude=CENTER.longitude, radius_meters=50.0)
    values.update(overrides)
    return GeofenceConfig(**values)


def make_controller(provider, hrms, *, config=None, geocoder=None, label_timeout=1.0):
    return AttendanceFlowController(
        config=config or office(),
        probe=LocationProbe(provider),
        recorder=hrms,
        status=hrms,
        geocoder=geocoder,
        refresh_delays=(0, 0),
        label_timeout=label_timeout,
    )


def test_check_in_inside_office_settles_without_prompt():
    hrms = FakeHrms()
    controller = make_controller(ScriptedProvider(CENTER), hrms, geocoder=FakeGeocoder())

    outcome = asyncio.run(controller.trigger())

    assert outcome.state is FlowState.SETTLED
    assert outcome.action is AttendanceAction.CHECK_IN
    assert outcome.verdict.within_bounds is True
    assert outcome.message == "Check-in successful."
    [submission] = hrms.check_ins
    assert submission.location_name == "Patna Office"
    assert submission.reason is None
    assert submission.location_exception is False


def test_outside_office_requires_justification():
    hrms = FakeHrms()
    controller = make_controller(ScriptedProvider(FAR), hrms)

    async def scenario():
        outcome = await controller.trigger()
        assert outcome.needs_justification
        assert "200 meters away" in outcome.message
        assert hrms.check_ins == []

        with pytest.raises(JustificationMissing):
            await controller.submit_justification("   ")
        assert controller.state is FlowState.AWAITING_JUSTIFICATION

        return await controller.submit_justification("Client site visit")

    outcome = asyncio.run(scenario())

    assert outcome.state is FlowState.SETTLED
    [submission] = hrms.check_ins
    assert submission.reason == "Client site visit"
    assert submission.location_exception is True
    assert outcome.message.endswith("Attendance was marked with a location exception.")


def test_justification_missing_is_a_validation_error():
    assert issubclass(JustificationMissing, ValidationError)


def test_primary_timeout_falls_back_automatically():
    provider = ScriptedProvider(PlatformLocationError.TIMEOUT, CENTER)
    hrms = FakeHrms()
    geocoder = FakeGeocoder()
    controller = make_controller(provider, hrms, geocoder=geocoder)
    states = []
    controller.on_state_change(states.append)

    outcome = asyncio.run(controller.trigger())

    assert outcome.state is FlowState.SETTLED
    assert outcome.used_fallback is True
    assert states == [FlowState.LOCATING_PRIMARY, FlowState.LOCATING_FALLBACK, FlowState.SUBMITTING, FlowState.SETTLED]
    assert [o.enable_high_accuracy for o in provider.calls] == [True, False]
    # Fallback fixes are labelled by coordinates without a geocoder lookup.
    assert geocoder.calls == []
    assert hrms.check_ins[0].location_name == "25.6147, 85.1126"


def test_position_unavailable_also_falls_back():
    provider = ScriptedProvider(PlatformLocationError.POSITION_UNAVAILABLE, CENTER)
    controller = make_controller(provider, FakeHrms())

    outcome = asyncio.run(controller.trigger())

    assert outcome.state is FlowState.SETTLED
    assert outcome.used_fallback is True


def test_fallback_failure_fails_the_flow():
    provider = ScriptedProvider(PlatformLocationError.TIMEOUT, PlatformLocationError.POSITION_UNAVAILABLE)
    hrms = FakeHrms()
    controller = make_controller(provider, hrms)

    outcome = asyncio.run(controller.trigger())

    assert outcome.state is FlowState.FAILED
    assert isinstance(outcome.error, PositionUnavailable)
    assert outcome.message == "Location information is unavailable."
    assert len(provider.calls) == 2
    assert hrms.check_ins == []


def test_permission_denied_fails_without_fallback():
    provider = ScriptedProvider(PlatformLocationError.PERMISSION_DENIED)
    hrms = FakeHrms()
    controller = make_controller(provider, hrms)

    outcome = asyncio.run(controller.trigger())

    assert outcome.state is FlowState.FAILED
    assert isinstance(outcome.error, PermissionDenied)
    assert len(provider.calls) == 1
    assert hrms.check_ins == []


def test_missing_location_service_fails():
    controller = make_controller(None, FakeHrms())

    outcome = asyncio.run(controller.trigger())

    assert outcome.state is FlowState.FAILED
    assert outcome.message == "Geolocation is not supported on this device."


def test_checked_in_user_is_checked_out_even_when_check_in_requested():
    hrms = FakeHrms(AttendanceDayState(is_checked_in=True, check_in_time=MORNING))
    controller = make_controller(ScriptedProvider(CENTER), hrms)

    outcome = asyncio.run(controller.trigger(AttendanceAction.CHECK_IN))

    assert outcome.action is AttendanceAction.CHECK_OUT
    assert hrms.check_ins == []
    assert len(hrms.check_outs) == 1
    assert outcome.message == "Check-out successful."


def test_optional_geofence_skips_prompt_outside_office():
    hrms = FakeHrms()
    controller = make_controller(ScriptedProvider(FAR), hrms, config=office(required=False))

    outcome = asyncio.run(controller.trigger())

    assert outcome.state is FlowState.SETTLED
    assert hrms.check_ins[0].reason is None
    assert hrms.check_ins[0].location_exception is True


def test_disabled_geofence_skips_location_entirely():
    provider = ScriptedProvider()
    hrms = FakeHrms()
    controller = make_controller(provider, hrms, config=office(enabled=False))

    outcome = asyncio.run(controller.trigger())

    assert outcome.state is FlowState.SETTLED
    assert provider.calls == []
    submission = hrms.check_ins[0]
    assert (submission.latitude, submission.longitude) == (0.0, 0.0)
    assert submission.location_exception is False


def test_reason_given_up_front_skips_prompt():
    hrms = FakeHrms()
    controller = make_controller(ScriptedProvider(FAR), hrms)

    outcome = asyncio.run(controller.trigger(reason="Working from the warehouse"))

    assert outcome.state is FlowState.SETTLED
    assert hrms.check_ins[0].reason == "Working from the warehouse"


def test_cancel_at_prompt_records_nothing():
    hrms = FakeHrms()
    controller = make_controller(ScriptedProvider(FAR), hrms)

    asyncio.run(controller.trigger())
    outcome = controller.cancel()

    assert outcome.state is FlowState.IDLE
    assert outcome.action is None
    assert hrms.check_ins == []


def test_cancel_and_justify_outside_prompt_are_rejected():
    controller = make_controller(ScriptedProvider(), FakeHrms())

    with pytest.raises(FlowStateError):
        controller.cancel()
    with pytest.raises(FlowStateError):
        asyncio.run(controller.submit_justification("late"))


def test_submission_failure_is_not_retried():
    hrms = FakeHrms(fail_with=SubmissionFailed("You have already checked in today", status_code=409))
    controller = make_controller(ScriptedProvider(CENTER), hrms)

    async def scenario():
        outcome = await controller.trigger()
        await controller.wait_for_refreshes()
        return outcome

    outcome = asyncio.run(scenario())

    assert outcome.state is FlowState.FAILED
    assert outcome.message == "You have already checked in today"
    assert outcome.error.status_code == 409
    assert hrms.status_calls == 1


def test_flow_can_be_retried_after_failure():
    provider = ScriptedProvider(PlatformLocationError.PERMISSION_DENIED, CENTER)
    hrms = FakeHrms()
    controller = make_controller(provider, hrms)

    first = asyncio.run(controller.trigger())
    second = asyncio.run(controller.trigger())

    assert first.state is FlowState.FAILED
    assert second.state is FlowState.SETTLED
    assert second.error is None


def test_second_trigger_while_submitting_is_ignored():
    hrms = FakeHrms()
    controller = make_controller(ScriptedProvider(CENTER), hrms)

    async def scenario():
        hrms.gate = asyncio.Event()
        hrms.submitting = asyncio.Event()
        first = asyncio.ensure_future(controller.trigger())
        await hrms.submitting.wait()

        second = await controller.trigger()
        hrms.gate.set()
        return await first, second

    first, second = asyncio.run(scenario())

    assert second.ignored is True
    assert first.state is FlowState.SETTLED
    assert len(hrms.check_ins) == 1


def test_status_is_refreshed_on_a_bounded_schedule():
    hrms = FakeHrms()
    controller = make_controller(ScriptedProvider(CENTER), hrms)
    seen = []
    controller.on_day_state(seen.append)

    async def scenario():
        await controller.trigger()
        await controller.wait_for_refreshes()

    asyncio.run(scenario())

    # one read before the punch, then exactly two follow-ups
    assert hrms.status_calls == 3
    assert seen[-1].check_in_time == MORNING
    assert controller.day_state.is_checked_in is True


def test_day_complete_is_a_no_op():
    hrms = FakeHrms(AttendanceDayState(check_in_time=MORNING, check_out_time=EVENING))
    provider = ScriptedProvider()
    controller = make_controller(provider, hrms)

    outcome = asyncio.run(controller.trigger())

    assert outcome.state is FlowState.IDLE
    assert outcome.action is None
    assert provider.calls == []
    assert hrms.check_ins == [] and hrms.check_outs == []


def test_geocoder_failure_falls_back_to_coordinates():
    hrms = FakeHrms()
    geocoder = FakeGeocoder(error=GeocodingFailed("upstream down"))
    controller = make_controller(ScriptedProvider(CENTER), hrms, geocoder=geocoder)

    asyncio.run(controller.trigger())

    assert hrms.check_ins[0].location_name == "25.6147, 85.1126"


def test_slow_geocoder_does_not_block_submission():
    hrms = FakeHrms()
    geocoder = FakeGeocoder(delay=1.0)
    controller = make_controller(ScriptedProvider(CENTER), hrms, geocoder=geocoder, label_timeout=0.01)

    outcome = asyncio.run(controller.trigger())

    assert outcome.state is FlowState.SETTLED
    assert hrms.check_ins[0].location_name == "25.6147, 85.1126"


def test_status_read_failure_fails_the_flow():
    class BrokenStatus(FakeHrms):
        async def get_today_status(self):
            raise SubmissionFailed("server unavailable")

    hrms = BrokenStatus()
    provider = ScriptedProvider()
    controller = make_controller(provider, hrms)

    outcome = asyncio.run(controller.trigger())

    assert outcome.state is FlowState.FAILED
    assert provider.calls == []


def test_primary_timeout_error_type():
    provider = ScriptedProvider(PlatformLocationError.TIMEOUT, PlatformLocationError.TIMEOUT)
    controller = make_controller(provider, FakeHrms())

    outcome = asyncio.run(controller.trigger())

    assert isinstance(outcome.error, LocationTimeout)
    assert outcome.used_fallback is True


def test_fallback_point_outside_office_still_needs_justification():
    provider = ScriptedProvider(PlatformLocationError.TIMEOUT, FAR)
    hrms = FakeHrms()
    controller = make_controller(provider, hrms)

    outcome = asyncio.run(controller.trigger())

    assert outcome.state is FlowState.AWAITING_JUSTIFICATION
    assert outcome.used_fallback is True
    assert hrms.check_ins == []


def test_fallback_point_outside_office_uses_reason_given_up_front():
    provider = ScriptedProvider(PlatformLocationError.TIMEOUT, FAR)
    hrms = FakeHrms()
    controller = make_controller(provider, hrms)

    outcome = asyncio.run(controller.trigger(reason="GPS is weak on site"))

    assert outcome.state is FlowState.SETTLED
    [submission] = hrms.check_ins
    assert submission.reason == "GPS is weak on site"
    assert submission.location_exception is True
    assert submission.location_name == "25.6165, 85.1126"


def test_unexpected_recorder_error_fails_flow_and_allows_retry():
    hrms = FakeHrms(fail_with=ValueError("unreadable response"))
    controller = make_controller(ScriptedProvider(CENTER, CENTER), hrms)

    with pytest.raises(ValueError):
        asyncio.run(controller.trigger())
    assert controller.state is FlowState.FAILED
    assert controller.in_progress is False

    hrms.fail_with = None
    outcome = asyncio.run(controller.trigger())

    assert outcome.ignored is False
    assert outcome.state is FlowState.SETTLED


def test_unexpected_error_after_justification_fails_flow():
    hrms = FakeHrms(fail_with=KeyError("isCheckedIn"))
    controller = make_controller(ScriptedProvider(FAR), hrms)

    async def scenario():
        await controller.trigger()
        with pytest.raises(KeyError):
            await controller.submit_justification("Client site visit")

    asyncio.run(scenario())

    assert controller.state is FlowState.FAILED
    assert controller.in_progress is False


def test_unreadable_status_during_refresh_keeps_settled_punch():
    class FlakyStatus(FakeHrms):
        async def get_today_status(self):
            self.status_calls += 1
            if self.status_calls > 1:
                raise ValueError("bad timestamp")
            return self.state

    hrms = FlakyStatus()
    controller = make_controller(ScriptedProvider(CENTER), hrms)

    async def scenario():
        outcome = await controller.trigger()
        await controller.wait_for_refreshes()
        return outcome

    outcome = asyncio.run(scenario())

    assert outcome.state is FlowState.SETTLED
    assert hrms.status_calls == 3
    assert controller.day_state.check_in_time == MORNING


def test_finished_refreshes_are_released():
    hrms = FakeHrms()
    controller = make_controller(ScriptedProvider(CENTER, CENTER), hrms)

    async def scenario():
        await controller.trigger()
        assert controller.pending_refreshes == 2
        await asyncio.sleep(0.05)
        after_first = controller.pending_refreshes
        await controller.trigger()
        await asyncio.sleep(0.05)
        return after_first, controller.pending_refreshes

    assert asyncio.run(scenario()) == (0, 0)

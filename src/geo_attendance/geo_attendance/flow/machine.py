"""Geo-fenced check-in/check-out flow.

The controller owns one punch attempt at a time:

    IDLE -> LOCATING_PRIMARY -> [AWAITING_JUSTIFICATION] -> SUBMITTING -> SETTLED
                 |                        ^
                 +-> LOCATING_FALLBACK ---+--> SUBMITTING | FAILED

Which action applies (check-in or check-out) is always derived from today's
state as reported by the server, never from what the user clicked. After a
recorded punch the day state is re-read on a short, bounded schedule because
the status read path may lag behind the write.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Callable, List, Optional, Sequence

from ..attendance.model import AttendanceDayState, AttendanceSubmission
from ..common.geo_format import format_coordinates
from ..core.constants import DEFAULT_LABEL_LOOKUP_TIMEOUT, DEFAULT_REFRESH_DELAYS
from ..core.enums import AttendanceAction, DayProgress, FlowState
from ..core.exceptions import (
    DomainError,
    FlowStateError,
    GeocodingFailed,
    JustificationMissing,
    LocationError,
    SubmissionFailed,
)
from ..geofence.evaluator import GeofenceEvaluator
from ..geofence.model import ZERO_POINT, GeofenceConfig, GeofenceVerdict, GeoPoint
from ..location.probe import LocationProbe, is_fallback_eligible
from .collaborators import AttendanceRecorder, AttendanceStatusQuery, ReverseGeocoder
from .model import FlowOutcome

logger = logging.getLogger(__name__)

_IN_PROGRESS = frozenset(
    {
        FlowState.LOCATING_PRIMARY,
        FlowState.AWAITING_JUSTIFICATION,
        FlowState.LOCATING_FALLBACK,
        FlowState.SUBMITTING,
    }
)

_ACTION_FOR_PROGRESS = {
    DayProgress.NOT_CHECKED_IN: AttendanceAction.CHECK_IN,
    DayProgress.CHECKED_IN_ONLY: AttendanceAction.CHECK_OUT,
}

_ACTION_LABEL = {
    AttendanceAction.CHECK_IN: "Check-in",
    AttendanceAction.CHECK_OUT: "Check-out",
}


class AttendanceFlowController:
    def __init__(
        self,
        *,
        config: GeofenceConfig,
        probe: LocationProbe,
        recorder: AttendanceRecorder,
        status: AttendanceStatusQuery,
        geocoder: Optional[ReverseGeocoder] = None,
        refresh_delays: Sequence[float] = DEFAULT_REFRESH_DELAYS,
        label_timeout: float = DEFAULT_LABEL_LOOKUP_TIMEOUT,
    ):
        self._evaluator = GeofenceEvaluator(config)
        self._probe = probe
        self._recorder = recorder
        self._status = status
        self._geocoder = geocoder
        self._refresh_delays = tuple(float(d) for d in refresh_delays)
        self._label_timeout = float(label_timeout)

        self._state = FlowState.IDLE
        self._starting = False
        self._day_state = AttendanceDayState()
        self._refresh_tasks: List[asyncio.Task] = []
        self._state_listeners: List[Callable[[FlowState], None]] = []
        self._day_state_listeners: List[Callable[[AttendanceDayState], None]] = []
        self._reset_attempt()

    # ----- observation -----

    @property
    def config(self) -> GeofenceConfig:
        return self._evaluator.config

    @property
    def state(self) -> FlowState:
        return self._state

    @property
    def action(self) -> Optional[AttendanceAction]:
        return self._action

    @property
    def verdict(self) -> Optional[GeofenceVerdict]:
        return self._verdict

    @property
    def day_state(self) -> AttendanceDayState:
        return self._day_state

    @property
    def in_progress(self) -> bool:
        return self._starting or self._state in _IN_PROGRESS

    @property
    def pending_refreshes(self) -> int:
        return len(self._refresh_tasks)

    def on_state_change(self, listener: Callable[[FlowState], None]) -> None:
        self._state_listeners.append(listener)

    def on_day_state(self, listener: Callable[[AttendanceDayState], None]) -> None:
        self._day_state_listeners.append(listener)

    # ----- user events -----

    async def trigger(
        self,
        requested: Optional[AttendanceAction] = None,
        *,
        reason: Optional[str] = None,
    ) -> FlowOutcome:
        """Start a punch. `requested` is only a hint; today's state decides the action.

        A `reason` given up front is used if the point turns out to be outside
        the boundary, so no prompt is needed.
        """
        if self.in_progress:
            logger.info("Ignoring attendance trigger while a punch is %s", self._state.value)
            return self._outcome(ignored=True, message="An attendance action is already in progress.")

        try:
            return await self._start(requested, reason)
        except Exception:
            self._abandon()
            raise

    async def _start(self, requested: Optional[AttendanceAction], reason: Optional[str]) -> FlowOutcome:
        self._reset_attempt()
        if self._state is not FlowState.IDLE:
            self._set_state(FlowState.IDLE)
        self._justification = (reason or "").strip() or None
        self._starting = True
        try:
            day_state = await self._status.get_today_status()
        except DomainError as e:
            return self._fail(e)
        finally:
            self._starting = False
        self._apply_day_state(day_state)

        action = _ACTION_FOR_PROGRESS.get(day_state.progress)
        if action is None:
            logger.info("Attendance for today is already complete; nothing to do")
            return self._outcome(message="Attendance for today is already complete.")
        if requested is not None and requested is not action:
            logger.info("Requested %s but today's attendance calls for %s", requested.value, action.value)
        self._action = action

        if not self.config.enabled:
            verdict = self._evaluator.evaluate(ZERO_POINT)
            return await self._proceed(verdict, format_coordinates(ZERO_POINT.latitude, ZERO_POINT.longitude))

        self._set_state(FlowState.LOCATING_PRIMARY)
        try:
            point = await self._probe.acquire_primary()
        except LocationError as e:
            if is_fallback_eligible(e):
                return await self._locate_fallback(e)
            return self._fail(e)

        label = await self._resolve_label(point)
        return await self._proceed(self._evaluator.evaluate(point), label)

    async def submit_justification(self, text: Optional[str]) -> FlowOutcome:
        if self._state is not FlowState.AWAITING_JUSTIFICATION:
            raise FlowStateError(f"No justification expected while {self._state.value}")

        text = (text or "").strip()
        if not text:
            logger.info("Rejected empty justification; still awaiting a reason")
            raise JustificationMissing()

        self._justification = text
        try:
            return await self._submit()
        except Exception:
            self._abandon()
            raise

    def cancel(self) -> FlowOutcome:
        """Abandon the punch while the reason prompt is open. Nothing is recorded."""
        if self._state is not FlowState.AWAITING_JUSTIFICATION:
            raise FlowStateError(f"Cannot cancel while {self._state.value}")

        logger.info("%s cancelled at the justification prompt", _ACTION_LABEL[self._action])
        self._reset_attempt()
        self._set_state(FlowState.IDLE)
        return self._outcome(message="Attendance action cancelled.")

    # ----- status reconciliation -----

    async def refresh_status(self) -> AttendanceDayState:
        try:
            day_state = await self._status.get_today_status()
        except (DomainError, ValueError, KeyError) as e:
            logger.warning("Attendance status refresh failed: %s", e)
            return self._day_state
        self._apply_day_state(day_state)
        return day_state

    async def wait_for_refreshes(self) -> None:
        tasks, self._refresh_tasks = self._refresh_tasks, []
        if tasks:
            await asyncio.gather(*tasks)

    # ----- internals -----

    async def _locate_fallback(self, primary_error: LocationError) -> FlowOutcome:
        logger.warning("Primary location attempt failed (%s); retrying with low accuracy", primary_error)
        self._used_fallback = True
        self._set_state(FlowState.LOCATING_FALLBACK)
        try:
            point = await self._probe.acquire_fallback()
        except LocationError as e:
            logger.warning("Fallback location attempt failed: %s", e)
            return self._fail(e)

        # Degraded path: coordinates only, no wait on the geocoder.
        return await self._proceed(self._evaluator.evaluate(point), format_coordinates(point.latitude, point.longitude))

    async def _proceed(self, verdict: GeofenceVerdict, label: str) -> FlowOutcome:
        self._verdict = verdict
        self._label = label

        if verdict.within_bounds or not self.config.required or self._justification:
            return await self._submit()

        self._set_state(FlowState.AWAITING_JUSTIFICATION)
        return self._outcome(
            message=(
                f"You are {verdict.distance_meters:.0f} meters away from the office. "
                f"You need to be within {self.config.radius_meters:g} meters, "
                "or give a reason for marking attendance from here."
            )
        )

    async def _submit(self) -> FlowOutcome:
        verdict = self._verdict
        point: GeoPoint = verdict.point
        submission = AttendanceSubmission(
            latitude=point.latitude,
            longitude=point.longitude,
            location_name=self._label,
            reason=self._justification,
            location_exception=not verdict.within_bounds,
        )

        self._set_state(FlowState.SUBMITTING)
        record = (
            self._recorder.record_check_in
            if self._action is AttendanceAction.CHECK_IN
            else self._recorder.record_check_out
        )
        try:
            day_state = await record(submission)
        except DomainError as e:
            # Never retried: a retry could record the punch twice.
            error = e if isinstance(e, SubmissionFailed) else SubmissionFailed(str(e))
            logger.error("%s was not recorded: %s", _ACTION_LABEL[self._action], error)
            return self._fail(error)

        self._apply_day_state(day_state)
        self._set_state(FlowState.SETTLED)
        self._schedule_refreshes()

        message = f"{_ACTION_LABEL[self._action]} successful."
        if submission.location_exception:
            message += " Attendance was marked with a location exception."
        return self._outcome(message=message)

    async def _resolve_label(self, point: GeoPoint) -> str:
        fallback = format_coordinates(point.latitude, point.longitude)
        if self._geocoder is None:
            return fallback
        try:
            name = await asyncio.wait_for(
                self._geocoder.reverse_geocode(point.latitude, point.longitude),
                timeout=self._label_timeout,
            )
        except (GeocodingFailed, asyncio.TimeoutError) as e:
            logger.warning("Geocoding unavailable, using coordinates as location name: %s", str(e) or "timed out")
            return fallback
        return name or fallback

    def _schedule_refreshes(self) -> None:
        loop = asyncio.get_running_loop()
        for delay in self._refresh_delays:
            task = loop.create_task(self._refresh_after(delay))
            task.add_done_callback(self._forget_refresh)
            self._refresh_tasks.append(task)

    def _forget_refresh(self, task: asyncio.Task) -> None:
        if task in self._refresh_tasks:
            self._refresh_tasks.remove(task)

    async def _refresh_after(self, delay: float) -> None:
        await asyncio.sleep(delay)
        await self.refresh_status()

    def _abandon(self) -> None:
        # Unexpected errors must not leave the flow stuck in progress.
        if self._state in _IN_PROGRESS and self._state is not FlowState.AWAITING_JUSTIFICATION:
            logger.exception("Attendance flow aborted while %s", self._state.value)
            self._set_state(FlowState.FAILED)

    def _fail(self, error: DomainError) -> FlowOutcome:
        self._error = error
        self._set_state(FlowState.FAILED)
        return self._outcome(message=str(error))

    def _reset_attempt(self) -> None:
        self._action = None
        self._verdict = None
        self._label = None
        self._justification = None
        self._error = None
        self._used_fallback = False

    def _set_state(self, state: FlowState) -> None:
        previous, self._state = self._state, state
        logger.info("Attendance flow %s -> %s", previous.value, state.value)
        for listener in self._state_listeners:
            listener(state)

    def _apply_day_state(self, day_state: AttendanceDayState) -> None:
        self._day_state = day_state
        for listener in self._day_state_listeners:
            listener(day_state)

    def _outcome(self, *, ignored: bool = False, message: str = "") -> FlowOutcome:
        return FlowOutcome(
            state=self._state,
            action=self._action,
            verdict=self._verdict,
            day_state=self._day_state,
            error=self._error,
            used_fallback=self._used_fallback,
            ignored=ignored,
            message=message,
        )

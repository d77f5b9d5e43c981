"""Command-line punch client.

    hrms-attendance status
    hrms-attendance punch --lat 25.6147 --lon 85.1126 [--accuracy 12] [--reason "..."]

Credentials come from --username/--password or HRMS_USERNAME/HRMS_PASSWORD.
The position given on the command line stands in for the device's location
service.
"""

from __future__ import annotations

import argparse
import asyncio
import importlib
import logging
import os
import sys
from typing import Callable, Optional, Sequence

from dotenv import load_dotenv

from config import get_settings_module

from ..core.constants import DEFAULT_LABEL_LOOKUP_TIMEOUT, DEFAULT_REFRESH_DELAYS
from ..core.enums import AttendanceAction, FlowState
from ..core.exceptions import DomainError, JustificationMissing
from ..flow.machine import AttendanceFlowController
from ..location.probe import LocationProbe
from ..location.providers import StaticLocationProvider
from .api_client import HrmsApiClient

logger = logging.getLogger(__name__)

CANCEL_WORD = ":cancel"

ClientFactory = Callable[[str], HrmsApiClient]


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="hrms-attendance", description="Geo-fenced attendance punches")
    parser.add_argument("--base-url", help="attendance server URL (default: HRMS_API_BASE_URL)")
    parser.add_argument("--username", default=os.getenv("HRMS_USERNAME"))
    parser.add_argument("--password", default=os.getenv("HRMS_PASSWORD"))
    parser.add_argument("-v", "--verbose", action="store_true", help="debug logging")

    sub = parser.add_subparsers(dest="command", required=True)
    sub.add_parser("status", help="show today's attendance")

    punch = sub.add_parser("punch", help="check in or check out from a position")
    punch.add_argument("--lat", type=float, required=True)
    punch.add_argument("--lon", type=float, required=True)
    punch.add_argument("--accuracy", type=float, default=None, help="reported accuracy in meters")
    punch.add_argument(
        "--action",
        choices=[a.value for a in AttendanceAction],
        help="hint only; today's attendance decides the action",
    )
    punch.add_argument("--reason", help="justification to use if outside the office boundary")
    return parser


def _print_status(day_state, out) -> None:
    print(f"Today: {day_state.progress.value}", file=out)
    if day_state.check_in_time:
        print(f"  checked in at  {day_state.check_in_time:%H:%M:%S}", file=out)
    if day_state.check_out_time:
        print(f"  checked out at {day_state.check_out_time:%H:%M:%S}", file=out)


async def _run_punch(
    args: argparse.Namespace,
    client: HrmsApiClient,
    settings,
    input_func: Callable[[str], str],
    out,
) -> int:
    config = await client.get_geofence_config()
    controller = AttendanceFlowController(
        config=config,
        probe=LocationProbe(StaticLocationProvider(latitude=args.lat, longitude=args.lon, accuracy=args.accuracy)),
        recorder=client,
        status=client,
        geocoder=client,
        refresh_delays=getattr(settings, "ATTENDANCE_REFRESH_DELAYS", DEFAULT_REFRESH_DELAYS),
        label_timeout=float(getattr(settings, "LABEL_LOOKUP_TIMEOUT", DEFAULT_LABEL_LOOKUP_TIMEOUT)),
    )

    requested = AttendanceAction(args.action) if args.action else None
    outcome = await controller.trigger(requested, reason=args.reason)

    while outcome.needs_justification:
        print(outcome.message, file=out)
        try:
            text = input_func(f"Reason (or {CANCEL_WORD}): ")
        except EOFError:
            text = CANCEL_WORD
        if text.strip() == CANCEL_WORD:
            outcome = controller.cancel()
            print(outcome.message, file=out)
            return 1
        try:
            outcome = await controller.submit_justification(text)
        except JustificationMissing as e:
            print(e, file=out)

    print(outcome.message, file=out)
    await controller.wait_for_refreshes()
    if outcome.state is FlowState.SETTLED:
        _print_status(controller.day_state, out)
    return 1 if outcome.state is FlowState.FAILED else 0


async def run(
    args: argparse.Namespace,
    settings,
    *,
    client_factory: ClientFactory = HrmsApiClient,
    input_func: Callable[[str], str] = input,
    out=None,
) -> int:
    out = out or sys.stdout
    base_url = args.base_url or getattr(settings, "HRMS_API_BASE_URL", "http://127.0.0.1:5000")
    async with client_factory(base_url) as client:
        try:
            await client.login(args.username or "", args.password or "")
            if args.command == "status":
                _print_status(await client.get_today_status(), out)
                return 0
            return await _run_punch(args, client, settings, input_func, out)
        except DomainError as e:
            logger.error("%s", e)
            print(f"Error: {e}", file=out)
            return 1


def main(argv: Optional[Sequence[str]] = None) -> int:
    load_dotenv(override=False)
    args = build_parser().parse_args(argv)
    settings = importlib.import_module(get_settings_module())
    level = "DEBUG" if args.verbose else str(getattr(settings, "LOG_LEVEL", "WARNING")).upper()
    logging.basicConfig(
        level=getattr(logging, level, logging.WARNING),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    return asyncio.run(run(args, settings))


if __name__ == "__main__":
    sys.exit(main())

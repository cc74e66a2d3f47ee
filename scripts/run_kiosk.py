"""Run a camera kiosk from the command line.

    python scripts/run_kiosk.py student --method code
    python scripts/run_kiosk.py teacher --method biometric --direction check_in

Ctrl+C stops the session and releases the camera.
"""
from __future__ import annotations

import argparse
import importlib
import logging
import signal
import sys
from dataclasses import replace
from pathlib import Path

REPO_ROOT = Path(__file__).resolve().parents[1]
if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))

from config import get_settings_module

from attendance_verifier.common.validators import optional_direction, require_population
from attendance_verifier.container import KioskSettings, build_container, build_session
from attendance_verifier.core.enums import VerificationMethod
from attendance_verifier.core.exceptions import CameraUnavailable
from attendance_verifier.kiosk.controller import event_to_dict
from attendance_verifier.verification.model import Accepted, OutcomeEvent


def print_outcome(event: OutcomeEvent) -> None:
    body = event_to_dict(event)
    if isinstance(event, Accepted):
        print(f"[OK] {body['full_name']} {body['direction']} {body['status']} ({body['message']})")
    else:
        print(f"[NO] {body['reason']}: {body['message']}")


def parse_args(argv=None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="School attendance kiosk")
    parser.add_argument("population", help="student or teacher")
    parser.add_argument("--method", choices=[m.value for m in VerificationMethod], default="code")
    parser.add_argument("--direction", default=None, help="check_in or check_out (default: auto)")
    parser.add_argument("--camera", type=int, default=None, help="override CAMERA_DEVICE_ID")
    parser.add_argument("--poll", type=float, default=0.05, help="seconds between frames")
    return parser.parse_args(argv)


def main(argv=None) -> int:
    args = parse_args(argv)
    settings = importlib.import_module(get_settings_module())
    logging.basicConfig(
        level=logging.DEBUG if getattr(settings, "DEBUG", False) else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    kiosk = KioskSettings.from_module(settings)
    if args.camera is not None:
        kiosk = replace(kiosk, camera_device_id=args.camera)
    container = build_container(db_config=dict(settings.DB_CONFIG), kiosk=kiosk)

    try:
        session = build_session(
            container,
            population=require_population(args.population),
            method=VerificationMethod(args.method),
            direction=optional_direction(args.direction),
            on_outcome=print_outcome,
            poll_interval=args.poll,
        )

        signal.signal(signal.SIGINT, lambda *_: session.stop())
        session.run()
    except CameraUnavailable as e:
        print(f"Camera unavailable: {e}", file=sys.stderr)
        return 1
    finally:
        container.close()
    return 0


if __name__ == "__main__":
    sys.exit(main())

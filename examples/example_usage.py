"""Example: verify a scanned badge through the service layer (no Flask, no camera).

Controllers and the scanning session are thin; the attempt itself lives in
VerificationService.
"""

import importlib
import sys

from config import get_settings_module

from attendance_verifier.container import KioskSettings, build_container
from attendance_verifier.core.enums import Population
from attendance_verifier.kiosk.controller import event_to_dict
from attendance_verifier.verification.model import CodeProbe


def main(payload: str = '{"personId": 1}'):
    settings = importlib.import_module(get_settings_module())
    container = build_container(db_config=settings.DB_CONFIG, kiosk=KioskSettings.from_module(settings))
    try:
        event = container.verification_service.verify(CodeProbe(payload), population=Population.STUDENT)
        print(event_to_dict(event))
    finally:
        container.close()


if __name__ == "__main__":
    main(*sys.argv[1:2])

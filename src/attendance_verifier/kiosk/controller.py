from __future__ import annotations

import io
import logging
from typing import Any, Dict, Optional

from flask import Flask, jsonify, request, send_file
from PIL import Image, UnidentifiedImageError

from ..common.validators import optional_date, optional_direction, require_population
from ..core.exceptions import ValidationError
from ..decoders.badge import badge_payload, render_badge_png
from ..policy.model import Location
from ..verification.model import Accepted, CodeProbe, OutcomeEvent, Probe
from ..container import Container

logger = logging.getLogger(__name__)


def event_to_dict(event: OutcomeEvent) -> Dict[str, Any]:
    if isinstance(event, Accepted):
        outcome = event.outcome
        return {
            "success": True,
            "person_id": event.person.person_id,
            "full_name": event.person.full_name,
            "population": outcome.population.value,
            "direction": outcome.direction.value,
            "status": outcome.status.value,
            "method": outcome.method.value,
            "timestamp": outcome.timestamp.isoformat(timespec="seconds"),
            "confidence": outcome.confidence,
            "distance_meters": outcome.distance_meters,
            "message": outcome.note or f"{outcome.direction.value} recorded",
        }
    return {
        "success": False,
        "reason": event.reason.value,
        "message": event.message,
        "method": event.method.value if event.method else None,
        "person_id": event.person_hint,
        "distance_meters": event.distance_meters,
        "timestamp": event.at.isoformat(timespec="seconds"),
    }


def _form_location() -> Optional[Location]:
    lat = (request.form.get("latitude") or "").strip()
    lon = (request.form.get("longitude") or "").strip()
    if not lat and not lon:
        return None
    try:
        accuracy = request.form.get("accuracy")
        return Location(float(lat), float(lon), float(accuracy) if accuracy else None)
    except ValueError:
        raise ValidationError("latitude/longitude must be numbers") from None


def _probe_from_request(container: Container) -> Optional[Probe]:
    # A handheld scanner (or the browser) may already have decoded the badge.
    payload = (request.form.get("payload") or "").strip()
    if payload:
        return CodeProbe(payload=payload)

    file = request.files.get("image")
    if not file or not file.filename:
        raise ValidationError("Send an 'image' file or a 'payload' field")

    try:
        img = Image.open(file.stream).convert("RGB")
    except (UnidentifiedImageError, OSError):
        raise ValidationError("Uploaded file is not a readable image") from None

    from ..decoders.qr import QRCodeDecoder

    probe = QRCodeDecoder().decode(img)
    if probe is None and container.kiosk.face_fallback:
        from ..decoders.face import FaceDescriptorDecoder

        probe = FaceDescriptorDecoder().decode(img)
    return probe


def register(app: Flask, container: Container) -> None:
    @app.route("/health", endpoint="health")
    def health():
        return jsonify({"status": "ok"}), 200

    @app.route("/api/kiosk/<population>/scan", methods=["POST"], endpoint="kiosk_scan")
    def kiosk_scan(population: str):
        """One-shot verification of an uploaded frame or scanned payload."""
        try:
            pop = require_population(population)
        except ValidationError as e:
            return jsonify({"success": False, "message": str(e)}), 404

        try:
            direction = optional_direction(request.form.get("direction"))
            location = _form_location()
            probe = _probe_from_request(container)
            if probe is None:
                return jsonify({"success": False, "message": "No badge or face detected in the image"}), 400

            event = container.verification_service.verify(
                probe,
                population=pop,
                direction=direction,
                location=location,
            )
            body = event_to_dict(event)
            return jsonify(body), 200 if body["success"] else 400
        except ValidationError as e:
            return jsonify({"success": False, "message": str(e)}), 400
        except Exception:
            logger.exception("Kiosk scan failed for %s", population)
            return jsonify({"success": False, "message": "System error while recording attendance"}), 500

    @app.route("/api/kiosk/<population>/mark-absent", methods=["POST"], endpoint="kiosk_mark_absent")
    def kiosk_mark_absent(population: str):
        """Close the day: everyone on the roster without a record becomes absent."""
        try:
            pop = require_population(population)
        except ValidationError as e:
            return jsonify({"success": False, "message": str(e)}), 404

        try:
            work_date = optional_date(request.form.get("date"))
            marked = container.verification_service.mark_absent(pop, work_date)
            return jsonify({"success": True, "population": pop.value, "marked": marked}), 200
        except ValidationError as e:
            return jsonify({"success": False, "message": str(e)}), 400
        except Exception:
            logger.exception("Absent sweep failed for %s", population)
            return jsonify({"success": False, "message": "System error while marking absences"}), 500

    @app.route("/api/kiosk/<population>/<int:person_id>/badge.png", endpoint="kiosk_badge")
    def kiosk_badge(population: str, person_id: int):
        try:
            pop = require_population(population)
        except ValidationError as e:
            return jsonify({"success": False, "message": str(e)}), 404

        try:
            person = container.roster_repo.get_person(pop, person_id)
            if person is None:
                return jsonify({"success": False, "message": f"{pop.value} {person_id} not found"}), 404

            png = render_badge_png(badge_payload(pop, person.person_id))
            return send_file(io.BytesIO(png), mimetype="image/png")
        except Exception as e:
            logger.exception("Badge rendering failed for %s %s", population, person_id)
            return jsonify({"success": False, "message": str(e)}), 500

"""Attendance verification engine.

Turns a scanned badge or a live camera frame into a verified, policy-checked
attendance record. Organized by feature modules (roster, biometrics, policy,
ledger, verification) with a thin Flask kiosk layer on top.
"""

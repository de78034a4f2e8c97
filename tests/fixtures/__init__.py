"""Test fixtures for the appointments project.

- appointments: drafts, records, patterns, series and record stores
- api: TestClient wired to a fresh AppointmentService
"""

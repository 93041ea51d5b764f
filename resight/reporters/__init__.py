"""Reporters - Flight record and HTML report generation."""

from resight.reporters.flight_recorder import FlightRecorder

__all__ = ["FlightRecorder"]

"""
Core business logic package for Work Check In.

Contains the headless CheckInEngine and the popup scheduling state
machine it drives. Zero UI dependencies.
"""

from core.engine import CheckInEngine

__all__ = ["CheckInEngine"]

"""
Case drivers for the closure engine.

This package provides:
    - Channel case with a frozen mean flow driving the closure
    - Prescribed velocity profiles (1/7th power law, parabolic, uniform)
"""

from .case import ClosureCase, velocity_profile, PROFILES

__all__ = [
    'ClosureCase',
    'velocity_profile',
    'PROFILES',
]

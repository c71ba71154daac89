"""
Wray-Agarwal turbulence closure engine.

One-equation eddy-viscosity closures of the Wray-Agarwal family (RANS,
bounded-destruction and hybrid RANS/LES variants) on a 2D structured
finite-volume mesh, plus the field-based gradient boundary condition.
"""

__version__ = "0.1.0"

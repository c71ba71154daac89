"""
Global constants for the Wray-Agarwal closure engine.

Numerical floors used to guard divisions, and the published default
coefficients of the WA-2017 model family (NASA TMR).
"""

# Numerical floors
SMALL = 1e-15     # Denominator floor for ratios of O(1) quantities
VSMALL = 1e-300   # Absolute floor (avoid exact zero divisions)
S_MIN = 1e-15     # Strain-rate floor [1/s]
NU_MIN = 1e-30    # Molecular-viscosity floor

# Value ranks
SCALAR = 0
VECTOR = 1

# Boundary sides of a structured block
I_MIN = "i_min"
I_MAX = "i_max"
J_MIN = "j_min"
J_MAX = "j_max"
SIDES = (I_MIN, I_MAX, J_MIN, J_MAX)

# WA-2017 default coefficients
KAPPA = 0.41
CW = 8.54
C1KE = 0.1127
C1KW = 0.0829
SIGMAKE = 1.0
SIGMAKW = 0.72

# Bounded (WA2017m) and DES extensions
CM = 8.0
CDES = 0.41
DELTA_COEFF = 2.0
FDES_LES = 0.5     # fdes in every cell of the forced-LES (DIT) variant

# f1 blending: cap and near-wall constants
F1_MAX = 0.9
F1_RNU_FACTOR = 1.5
F1_NU_FACTOR = 20.0

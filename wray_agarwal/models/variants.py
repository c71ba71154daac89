"""
Closure variants of the Wray-Agarwal model family.

Each variant is a frozen record naming the pieces that differ between
flavours; the engine (:class:`~wray_agarwal.models.closure.WrayAgarwalModel`)
runs the common steps and calls into the record for the rest:

    WrayAgarwal2017     RANS
    WrayAgarwal2017m    RANS, bounded second destruction term
    WA2017DES           hybrid RANS/LES (DES length scale)
    WA2017DESDIT        hybrid, LES branch forced everywhere
"""

from dataclasses import dataclass
from enum import Enum
from typing import Callable, Dict, Optional

import numpy as np

from wray_agarwal.config.schema import WrayAgarwalCoeffs, BoundedCoeffs, DESCoeffs, DITCoeffs
from wray_agarwal.errors import ConfigurationError
from wray_agarwal.physics import wray_agarwal as wa


class ClosureKind(Enum):
    WA2017 = "WrayAgarwal2017"
    WA2017M = "WrayAgarwal2017m"
    WA2017DES = "WA2017DES"
    WA2017DESDIT = "WA2017DESDIT"


def unbounded_destruction(coeffs, f1, Rnu, S, grad_S, grad_Rnu):
    return np.asarray(wa.wa_destruction(f1, coeffs.C2ke, Rnu, S, grad_S))


def bounded_destruction(coeffs, f1, Rnu, S, grad_S, grad_Rnu):
    return np.asarray(wa.wa_bounded_destruction(f1, coeffs.C2ke, coeffs.Cm,
                                                Rnu, S, grad_S, grad_Rnu))


class DESLengthScale:
    """
    DES length-scale switch.

        l_RANS = sqrt(Rnu/S) / kappa
        l_LES  = CDES * delta
        fdes   = l_LES / max(l_RANS, l_LES)

    fdes = 1 keeps the RANS destruction; fdes < 1 scales it by 1/fdes
    (LES branch).
    """

    name = "DES"

    def fdes(self, l_rans: np.ndarray, l_les: np.ndarray, coeffs) -> np.ndarray:
        return np.asarray(wa.fdes_des(l_rans, l_les))

    def indicator(self, fdes: np.ndarray) -> np.ndarray:
        """1 in LES cells, 0 in RANS cells."""
        return np.asarray(wa.les_indicator(fdes))


class DITLengthScale(DESLengthScale):
    """
    DES switch with the LES branch taken in every cell.

    fdes is the coefficient ``fdesLES`` (< 1) whatever the local length
    scales, so the destruction is never weakened below its RANS level.
    """

    name = "DIT"

    def fdes(self, l_rans, l_les, coeffs):
        return np.asarray(wa.fdes_dit(l_les, coeffs.fdesLES))

    def indicator(self, fdes):
        return np.ones_like(np.asarray(fdes, dtype=np.float64))


@dataclass(frozen=True)
class ClosureVariant:
    """What distinguishes one model flavour from another."""

    kind: ClosureKind
    coeffs_cls: type
    destruction: Callable
    hybrid: Optional[DESLengthScale] = None

    @property
    def type_name(self) -> str:
        return self.kind.value

    @property
    def coeffs_block(self) -> str:
        return f"{self.type_name}Coeffs"

    @property
    def is_hybrid(self) -> bool:
        return self.hybrid is not None


VARIANTS: Dict[ClosureKind, ClosureVariant] = {
    ClosureKind.WA2017: ClosureVariant(
        ClosureKind.WA2017, WrayAgarwalCoeffs, unbounded_destruction),
    ClosureKind.WA2017M: ClosureVariant(
        ClosureKind.WA2017M, BoundedCoeffs, bounded_destruction),
    ClosureKind.WA2017DES: ClosureVariant(
        ClosureKind.WA2017DES, DESCoeffs, unbounded_destruction, DESLengthScale()),
    ClosureKind.WA2017DESDIT: ClosureVariant(
        ClosureKind.WA2017DESDIT, DITCoeffs, unbounded_destruction, DITLengthScale()),
}


def variant_for(type_name: str) -> ClosureVariant:
    """
    Variant for a model type name.

    Raises
    ------
    ConfigurationError
        If the name is not a known closure type.
    """
    try:
        return VARIANTS[ClosureKind(type_name)]
    except ValueError:
        valid = [k.value for k in ClosureKind]
        raise ConfigurationError(
            f"Unknown turbulence model type '{type_name}'. Valid types: {valid}") from None

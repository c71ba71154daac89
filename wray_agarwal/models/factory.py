"""
Run-time selection of the closure model by type name.
"""

from typing import Any, Dict, Optional, Union

from wray_agarwal.config.properties import TurbulenceProperties
from wray_agarwal.config.schema import SolverControls
from .closure import WrayAgarwalModel
from .variants import ClosureKind, VARIANTS, variant_for


def create_model(properties: Union[TurbulenceProperties, Dict[str, Any]],
                 mesh, registry, nu: float,
                 controls: Optional[SolverControls] = None,
                 **field_names) -> WrayAgarwalModel:
    """
    Construct the closure selected by ``properties['model']``.

    Parameters
    ----------
    properties : TurbulenceProperties or dict
        Turbulence-properties mapping (``model`` plus coefficient blocks).
    mesh : StructuredMesh
    registry : FieldRegistry
        Holds ``U``, ``phi`` and ``Rnu``.
    nu : float
        Molecular kinematic viscosity.
    controls : SolverControls, optional
    **field_names
        Optional ``U_name``, ``phi_name``, ``Rnu_name`` overrides.

    Raises
    ------
    ConfigurationError
        Unknown model type, malformed coefficients or missing fields.
    """
    if not isinstance(properties, TurbulenceProperties):
        properties = TurbulenceProperties(properties)
    variant = variant_for(properties.model_type)
    return WrayAgarwalModel(variant, properties, mesh, registry, nu, controls, **field_names)


def available_models():
    """Type names accepted by :func:`create_model`."""
    return [kind.value for kind in ClosureKind if kind in VARIANTS]

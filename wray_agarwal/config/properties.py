"""
Re-readable turbulence-properties source.

Holds the ``turbulence`` mapping of a case::

    model: WrayAgarwal2017m
    printCoeffs: true
    WrayAgarwal2017mCoeffs:
        kappa: 0.41
        Cm: 8.0
    delta: maxDeltaxyz
    maxDeltaxyzCoeffs:
        deltaCoeff: 2

The mapping is either held in memory (edited with :meth:`set_coeff`) or
backed by a YAML file that is reloaded by :meth:`reread` when it changes
on disk.
"""

import copy
from pathlib import Path
from typing import Any, Dict, Optional, Union

import yaml
from loguru import logger

from wray_agarwal.errors import ConfigurationError


class TurbulenceProperties:
    """Turbulence-properties dictionary with change tracking."""

    def __init__(self, data: Optional[Dict[str, Any]] = None,
                 path: Optional[Union[str, Path]] = None):
        self.path = Path(path) if path is not None else None
        self._data = copy.deepcopy(data) if data is not None else {}
        self._mtime = self._stat() if self.path is not None else None

    @classmethod
    def from_yaml(cls, path: Union[str, Path]) -> 'TurbulenceProperties':
        """Load from a YAML file; a top-level ``turbulence`` key is unwrapped."""
        path = Path(path)
        if not path.exists():
            raise FileNotFoundError(f"Turbulence properties not found: {path}")
        return cls(_read_mapping(path), path=path)

    def _stat(self) -> Optional[int]:
        try:
            return self.path.stat().st_mtime_ns
        except FileNotFoundError:
            return None

    @property
    def model_type(self) -> str:
        """Selected closure type name."""
        model = self._data.get('model')
        if not model:
            raise ConfigurationError("Turbulence properties: 'model' entry is required")
        return str(model)

    @property
    def print_coeffs(self) -> bool:
        return bool(self._data.get('printCoeffs', True))

    def get(self, key: str, default=None):
        return self._data.get(key, default)

    def coeffs(self, type_name: str) -> Dict[str, Any]:
        """The ``<TypeName>Coeffs`` block (empty if absent)."""
        block_name = f"{type_name}Coeffs"
        block = self._data.get(block_name)
        if block is None:
            return {}
        if not isinstance(block, dict):
            raise ConfigurationError(f"{block_name} must be a mapping, got {type(block).__name__}")
        return dict(block)

    def set_coeff(self, type_name: str, key: str, value: float) -> None:
        """Edit one coefficient in memory (picked up by the next ``read()``)."""
        self._data.setdefault(f"{type_name}Coeffs", {})[key] = value

    def reread(self) -> bool:
        """
        Reload the backing file if it was modified since the last load.

        Returns
        -------
        bool
            True if the file was reloaded. Always False for in-memory
            properties.
        """
        if self.path is None:
            return False
        mtime = self._stat()
        if mtime is None or mtime == self._mtime:
            return False
        logger.info(f"Re-reading turbulence properties from {self.path}")
        self._data = _read_mapping(self.path)
        self._mtime = mtime
        return True

    def to_dict(self) -> Dict[str, Any]:
        return copy.deepcopy(self._data)

    def save(self, path: Optional[Union[str, Path]] = None) -> Path:
        """Write the mapping as YAML (to the backing file by default)."""
        path = Path(path) if path is not None else self.path
        if path is None:
            raise ConfigurationError("No path given for in-memory turbulence properties")
        path.parent.mkdir(parents=True, exist_ok=True)
        with open(path, 'w') as f:
            yaml.safe_dump(self._data, f, default_flow_style=False, sort_keys=False)
        return path


def _read_mapping(path: Path) -> Dict[str, Any]:
    with open(path) as f:
        data = yaml.safe_load(f) or {}
    if not isinstance(data, dict):
        raise ConfigurationError(f"{path}: turbulence properties must be a mapping")
    if isinstance(data.get('turbulence'), dict):
        data = data['turbulence']
    return data

"""
Name registry for the fields of one case.

Boundary conditions and closure models find the fields they read by name
(and value rank) here instead of holding construction-time references.
"""

from typing import Dict, Optional, List

from loguru import logger

from wray_agarwal.constants import SCALAR, VECTOR
from wray_agarwal.errors import ConfigurationError, FieldLookupError, FieldTypeError


_RANK_NAMES = {SCALAR: "scalar", VECTOR: "vector"}


class FieldRegistry:
    """
    Fields keyed by name.

    Example
    -------
    >>> registry = FieldRegistry()
    >>> registry.register(U)
    >>> registry.lookup("U", rank=VECTOR) is U
    True
    """

    def __init__(self):
        self._fields: Dict[str, object] = {}

    def register(self, field):
        """
        Add a field and bind it to this registry.

        Raises
        ------
        ConfigurationError
            If a field of the same name is already registered.
        """
        if field.name in self._fields:
            raise ConfigurationError(f"Field '{field.name}' is already registered")
        self._fields[field.name] = field
        field.db = self
        logger.debug(f"Registered field '{field.name}' ({type(field).__name__})")
        return field

    def lookup(self, name: str, rank: Optional[int] = None):
        """
        Find a field by name, optionally checking its value rank.

        Raises
        ------
        FieldLookupError
            If no field of that name is registered.
        FieldTypeError
            If ``rank`` is given and the field has a different rank.
        """
        try:
            field = self._fields[name]
        except KeyError:
            raise FieldLookupError(
                f"Field '{name}' not found. Registered: {sorted(self._fields)}") from None
        if rank is not None and field.rank != rank:
            raise FieldTypeError(
                f"Field '{name}' is a {_RANK_NAMES.get(field.rank, field.rank)} field, "
                f"expected {_RANK_NAMES.get(rank, rank)}")
        return field

    def lookup_surface(self, name: str):
        """Find a face-centred field by name."""
        field = self.lookup(name)
        if not hasattr(field, 'i_faces'):
            raise FieldTypeError(f"Field '{name}' is not a surface field")
        return field

    def remove(self, name: str) -> None:
        field = self.lookup(name)
        del self._fields[name]
        field.db = None

    def names(self) -> List[str]:
        return list(self._fields)

    def __contains__(self, name: str) -> bool:
        return name in self._fields

    def __len__(self) -> int:
        return len(self._fields)

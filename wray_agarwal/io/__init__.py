"""
I/O module for the closure engine.

Provides writers for closure fields.
"""

from .vtk import write_fields_vtk

__all__ = ['write_fields_vtk']

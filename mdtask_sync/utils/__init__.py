"""
Utility functions for mdtask-sync.
"""

from .io import atomic_write, atomic_write_json, file_lock, read_text
from .date import parse_date, parse_natural_date, format_date
from .sideband import encode_sideband, decode_sideband, strip_sideband

__all__ = [
    # I/O utilities
    'atomic_write',
    'atomic_write_json',
    'file_lock',
    'read_text',
    # Date utilities
    'parse_date',
    'parse_natural_date',
    'format_date',
    # Sideband utilities
    'encode_sideband',
    'decode_sideband',
    'strip_sideband',
]

"""
src/tuple_core/config.py
Configuración del Caché Canónico.
Tipos que se comparan por VALOR (primitivos) y no por identidad.
"""
from typing import Tuple

# Tipos inmutables sin identidad propia: la clave de la arista es el valor.
# Todo lo demás se trata por identidad de referencia (weakref o pinned).
DEFAULT_PRIMITIVE_TYPES: Tuple[type, ...] = (
    type(None),
    bool,
    int,
    float,
    complex,
    str,
    bytes,
)

DEFAULT_CACHE_NAME = "TupleCache"

"""
src/tuple_core/kinds.py
Ontología de Valores.
Decide si un elemento se indexa por VALOR (primitivo) o por IDENTIDAD (referencia).
"""
import weakref
from enum import Enum
from typing import Any, Hashable, Tuple

from .config import DEFAULT_PRIMITIVE_TYPES


class _MissingType:
    """
    Centinela "no se suministró valor".
    Distinto de None: Tuple(None) y Tuple(MISSING) son tuplas diferentes.
    """
    __slots__ = ()
    _instance = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self):
        return "MISSING"

    def __bool__(self):
        return False

    def __copy__(self):
        return self

    def __deepcopy__(self, memo):
        return self

    def __reduce__(self):
        return "MISSING"


MISSING = _MissingType()


class ValueKind(Enum):
    PRIMITIVE = "primitive"  # Clave por valor, arista con conteo explícito
    WEAK = "weak"            # Clave por identidad, arista débil (muere con el objeto)
    PINNED = "pinned"        # Clave por identidad, objeto sin soporte weakref: conteo explícito


# Clave única para todos los NaN (NaN != NaN rompería el lookup del dict)
_NAN_KEY = ("NaN",)

# Memo: tipo -> ¿admite weakref? (débil: las clases dinámicas pueden morir)
_weakrefable: "weakref.WeakKeyDictionary[type, bool]" = weakref.WeakKeyDictionary()


def supports_weakref(value: Any) -> bool:
    """La capacidad de weakref es propiedad del tipo, no de la instancia."""
    tp = type(value)
    cached = _weakrefable.get(tp)
    if cached is None:
        try:
            weakref.ref(value)
            cached = True
        except TypeError:
            cached = False
        _weakrefable[tp] = cached
    return cached


def classify(value: Any, primitive_types: Tuple[type, ...] = DEFAULT_PRIMITIVE_TYPES) -> ValueKind:
    # Tipo EXACTO: una subclase (p.ej. class Tag(int)) tiene identidad y estado propios
    if value is MISSING or type(value) in primitive_types:
        return ValueKind.PRIMITIVE
    if supports_weakref(value):
        return ValueKind.WEAK
    return ValueKind.PINNED


def _nan_safe(part: float) -> Hashable:
    return _NAN_KEY if part != part else part


def primitive_key(value: Any) -> Hashable:
    """
    Clave de valor crudo.
    El tipo forma parte de la clave: 1, 1.0 y True son iguales para Python
    pero son valores distintos para el caché.
    """
    tp = type(value)
    if tp is float:
        return (float, _nan_safe(value))
    if tp is complex:
        return (complex, (_nan_safe(value.real), _nan_safe(value.imag)))
    return (tp, value)

"""
src/tuple_core/kernel/node.py
Nodo del Trie de Caminos.
Representa el estado del caché alcanzable tras un prefijo concreto de elementos.
"""
import weakref
from typing import Iterator, Optional, TYPE_CHECKING

from ..memory.counted import PrimitiveEdgeTable
from ..memory.weak import ReferenceEdgeTable, Scheduler

if TYPE_CHECKING:
    from .handle import TupleHandle


class TrieNode:
    """
    Las tablas se crean de forma Lazy: la mayoría de nodos son hojas
    y solo necesitan el weakref a su handle.
    """
    __slots__ = ('primitive', 'reference', 'handle_ref')

    def __init__(self):
        self.primitive: Optional[PrimitiveEdgeTable] = None
        self.reference: Optional[ReferenceEdgeTable] = None
        self.handle_ref: Optional[weakref.ref] = None

    def primitive_table(self) -> PrimitiveEdgeTable:
        if self.primitive is None:
            self.primitive = PrimitiveEdgeTable()
        return self.primitive

    def reference_table(self, schedule: Optional[Scheduler] = None) -> ReferenceEdgeTable:
        if self.reference is None:
            self.reference = ReferenceEdgeTable(schedule)
        return self.reference

    @property
    def handle(self) -> Optional['TupleHandle']:
        """Handle vivo para este camino exacto, o None."""
        ref = self.handle_ref
        return ref() if ref is not None else None

    def has_children(self) -> bool:
        return bool(self.primitive) or bool(self.reference)

    def is_empty(self) -> bool:
        """Sin handle vivo ni hijos: nada depende de este nodo."""
        return self.handle is None and not self.has_children()

    def children(self) -> Iterator['TrieNode']:
        if self.primitive is not None:
            yield from self.primitive.children()
        if self.reference is not None:
            yield from self.reference.children()

    def __repr__(self):
        return (
            f"<TrieNode p={len(self.primitive or ())} "
            f"r={len(self.reference or ())} live={self.handle is not None}>"
        )

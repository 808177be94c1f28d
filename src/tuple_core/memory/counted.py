"""
src/tuple_core/memory/counted.py
Tabla de Aristas Primitivas v1.0 (Reference Counted).
Los valores primitivos no tienen identidad rastreable por el runtime,
así que la vida de cada arista se lleva con un conteo explícito.
"""
from typing import Any, Callable, Dict, Hashable, Iterator, Optional, TYPE_CHECKING

if TYPE_CHECKING:
    from ..kernel.node import TrieNode


class CountedEdge:
    """Hijo + número de handles vivos cuyo camino cruza esta arista."""
    __slots__ = ('child', 'count', 'pinned')

    def __init__(self, child: 'TrieNode', pinned: Any = None):
        self.child = child
        self.count = 0
        # Solo para aristas PINNED: referencia fuerte al objeto clave
        self.pinned = pinned


class PrimitiveEdgeTable:
    """
    Mapa valor-crudo -> (TrieNode, conteo).
    No tiene candado propio: el llamador (TupleCache) mantiene el RLock.
    """
    __slots__ = ('_entries',)

    def __init__(self):
        self._entries: Dict[Hashable, CountedEdge] = {}

    def get(self, key: Hashable) -> Optional['TrieNode']:
        entry = self._entries.get(key)
        return entry.child if entry is not None else None

    def get_or_create(self, key: Hashable, factory: Callable[[], 'TrieNode']) -> 'TrieNode':
        """
        Recupera o crea el hijo para 'key'.
        No toca el conteo: se retiene una vez por handle emitido (ver retain),
        de modo que internar N veces una tupla viva no infla los conteos.
        """
        entry = self._entries.get(key)
        if entry is None:
            entry = CountedEdge(factory())
            self._entries[key] = entry
        return entry.child

    def retain(self, key: Hashable):
        """Keep Alive."""
        self._entries[key].count += 1

    def release(self, key: Hashable, child: 'TrieNode') -> bool:
        """
        Decrementa el conteo. Retorna True si la arista murió (y se eliminó).
        Idempotente: si la entrada ya no existe o apunta a otro hijo, no hace nada.
        """
        entry = self._entries.get(key)
        if entry is None or entry.child is not child:
            return False
        entry.count -= 1
        if entry.count <= 0:
            del self._entries[key]
            return True
        return False

    def discard(self, key: Hashable, child: 'TrieNode') -> bool:
        entry = self._entries.get(key)
        if entry is None or entry.child is not child:
            return False
        del self._entries[key]
        return True

    def count_of(self, key: Hashable) -> int:
        entry = self._entries.get(key)
        return entry.count if entry is not None else 0

    def children(self) -> Iterator['TrieNode']:
        for entry in list(self._entries.values()):
            yield entry.child

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, key: Hashable) -> bool:
        return key in self._entries

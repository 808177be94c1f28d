"""
src/tuple_core/memory/weak.py
Tabla de Aristas por Identidad v1.0.
Indexa por id(obj) y verifica 'is', nunca __eq__/__hash__:
dos objetos con la misma forma jamás se fusionan.

Dos regímenes:
- WEAK:   el objeto admite weakref. La tabla solo guarda un weakref.ref;
          cuando el objeto muere, el callback agenda la expiración de la arista.
- PINNED: el objeto NO admite weakref (list, dict, tuple, object()...).
          La arista lo retiene y se cuenta como una arista primitiva.
"""
import logging
import weakref
from functools import partial
from typing import Any, Callable, Dict, Iterator, Optional, Union, TYPE_CHECKING

from ..kinds import ValueKind
from .counted import CountedEdge

if TYPE_CHECKING:
    from ..kernel.node import TrieNode

logger = logging.getLogger(__name__)

Scheduler = Callable[[Callable[[], Any]], None]


class WeakEdge:
    __slots__ = ('child', 'ref')

    def __init__(self, child: 'TrieNode', ref: weakref.ref):
        self.child = child
        self.ref = ref


def _expire(table_ref: weakref.ref, key: int, dead_ref: weakref.ref):
    # La tabla pudo desaparecer junto con su nodo antes de drenar la cola
    table = table_ref()
    if table is not None:
        table.expire(key, dead_ref)


class ReferenceEdgeTable:
    """
    Mapa identidad -> TrieNode.
    Sin candado propio: las mutaciones ocurren bajo el RLock del caché, y los
    callbacks de weakref solo AGENDAN trabajo a través de 'schedule'.
    """
    __slots__ = ('_entries', '_schedule', '_selfref', '__weakref__')

    def __init__(self, schedule: Optional[Scheduler] = None):
        self._entries: Dict[int, Union[WeakEdge, CountedEdge]] = {}
        # Sin scheduler (uso aislado), la expiración es inmediata
        self._schedule = schedule
        self._selfref = weakref.ref(self)

    # --- Lectura ---

    def _live_entry(self, obj: Any) -> Optional[Union[WeakEdge, CountedEdge]]:
        entry = self._entries.get(id(obj))
        if entry is None:
            return None
        if isinstance(entry, WeakEdge):
            # id() se recicla: una entrada cuyo referente murió no es de 'obj'
            return entry if entry.ref() is obj else None
        return entry if entry.pinned is obj else None

    def get(self, obj: Any) -> Optional['TrieNode']:
        entry = self._live_entry(obj)
        return entry.child if entry is not None else None

    # --- Escritura ---

    def get_or_create(self, obj: Any, kind: ValueKind, factory: Callable[[], 'TrieNode']) -> 'TrieNode':
        entry = self._live_entry(obj)
        if entry is not None:
            return entry.child

        key = id(obj)
        child = factory()
        if kind is ValueKind.PINNED:
            self._entries[key] = CountedEdge(child, pinned=obj)
        else:
            # Una entrada previa con el mismo id es basura de un objeto muerto
            # cuya expiración sigue en cola: se reemplaza.
            self._entries[key] = WeakEdge(child, self._watch(obj, key))
        return child

    def _watch(self, obj: Any, key: int) -> weakref.ref:
        selfref = self._selfref
        schedule = self._schedule

        def _on_dead(ref):
            if schedule is None:
                _expire(selfref, key, ref)
            else:
                schedule(partial(_expire, selfref, key, ref))

        return weakref.ref(obj, _on_dead)

    def retain(self, key: int):
        """Solo aristas PINNED llevan conteo."""
        entry = self._entries[key]
        if isinstance(entry, CountedEdge):
            entry.count += 1

    def release(self, key: int, child: 'TrieNode') -> bool:
        """Decrementa una arista PINNED. True si murió (el objeto queda liberado)."""
        entry = self._entries.get(key)
        if not isinstance(entry, CountedEdge) or entry.child is not child:
            return False
        entry.count -= 1
        if entry.count <= 0:
            del self._entries[key]
            return True
        return False

    def discard(self, key: int, child: 'TrieNode') -> bool:
        entry = self._entries.get(key)
        if entry is None or entry.child is not child:
            return False
        del self._entries[key]
        return True

    def expire(self, key: int, dead_ref: weakref.ref) -> Optional['TrieNode']:
        """
        Elimina la arista cuyo objeto clave murió.
        Solo si sigue siendo ESA arista (el id pudo reutilizarse después).
        """
        entry = self._entries.get(key)
        if not isinstance(entry, WeakEdge) or entry.ref is not dead_ref:
            return None
        del self._entries[key]
        logger.debug("Weak key expired: id=%#x", key)
        return entry.child

    # --- Introspección ---

    def count_of(self, key: int) -> int:
        entry = self._entries.get(key)
        return entry.count if isinstance(entry, CountedEdge) else 0

    def weak_count(self) -> int:
        return sum(1 for e in self._entries.values() if isinstance(e, WeakEdge))

    def pinned_count(self) -> int:
        return sum(1 for e in self._entries.values() if isinstance(e, CountedEdge))

    def children(self) -> Iterator['TrieNode']:
        for entry in list(self._entries.values()):
            yield entry.child

    def __len__(self) -> int:
        return len(self._entries)

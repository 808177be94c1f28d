"""
src/tuple_core/kernel/trie.py
Trie de Caminos v1.0.
Cada arista es un elemento de la secuencia; el nodo terminal de un recorrido
es el representante compartido de esa secuencia exacta.
"""
from typing import Any, Dict, Iterable, Iterator, List, NamedTuple, Optional, Tuple, Hashable

from ..config import DEFAULT_PRIMITIVE_TYPES
from ..kinds import ValueKind, classify, primitive_key
from ..memory.weak import Scheduler
from .node import TrieNode


class Step(NamedTuple):
    parent: TrieNode
    kind: ValueKind
    key: Hashable
    child: TrieNode


class PathTrie:
    """
    Estructura pura: no tiene candado. TupleCache serializa todas las llamadas.
    """
    __slots__ = ('root', '_primitive_types', '_schedule')

    def __init__(self, primitive_types: Tuple[type, ...] = DEFAULT_PRIMITIVE_TYPES,
                 schedule: Optional[Scheduler] = None):
        # Raíz permanente: secuencia vacía
        self.root = TrieNode()
        self._primitive_types = primitive_types
        self._schedule = schedule

    # =========================================================================
    # RECORRIDO
    # =========================================================================
    def walk(self, values: Iterable[Any]) -> Tuple[TrieNode, List[Step]]:
        """
        Recorre (y extiende) el trie con 'values'.
        Retorna el nodo terminal y el camino raíz -> terminal.
        Una secuencia vacía resuelve a la raíz sin tocar ninguna tabla.
        """
        node = self.root
        path: List[Step] = []
        try:
            for value in values:
                kind = classify(value, self._primitive_types)
                if kind is ValueKind.PRIMITIVE:
                    key = primitive_key(value)
                    child = node.primitive_table().get_or_create(key, TrieNode)
                else:
                    key = id(value)
                    child = node.reference_table(self._schedule).get_or_create(value, kind, TrieNode)
                path.append(Step(node, kind, key, child))
                node = child
        except BaseException:
            # p.ej. un tipo primitivo configurado que no es hashable
            self._rollback(path)
            raise
        return node, path

    @staticmethod
    def _rollback(path: List[Step]):
        """Deshace las aristas sin conteo y sin hijos que dejó un recorrido fallido."""
        for step in reversed(path):
            if not step.child.is_empty():
                break
            parent = step.parent
            if step.kind is ValueKind.PRIMITIVE:
                table = parent.primitive
            else:
                table = parent.reference
            if table is None or table.count_of(step.key) > 0:
                break
            table.discard(step.key, step.child)
            if not table:
                if step.kind is ValueKind.PRIMITIVE:
                    parent.primitive = None
                else:
                    parent.reference = None

    def lookup(self, values: Iterable[Any]) -> Optional[TrieNode]:
        """Recorrido de solo lectura. None si algún tramo no existe."""
        node = self.root
        for value in values:
            kind = classify(value, self._primitive_types)
            if kind is ValueKind.PRIMITIVE:
                table = node.primitive
                child = table.get(primitive_key(value)) if table is not None else None
            else:
                table = node.reference
                child = table.get(value) if table is not None else None
            if child is None:
                return None
            node = child
        return node

    # =========================================================================
    # CONTEO DE VIDA
    # =========================================================================
    @staticmethod
    def retain(path: List[Step]):
        """Un handle nuevo retiene una vez cada arista contada de su camino."""
        for step in path:
            if step.kind is ValueKind.PRIMITIVE:
                step.parent.primitive.retain(step.key)
            elif step.kind is ValueKind.PINNED:
                step.parent.reference.retain(step.key)

    @staticmethod
    def prune(path: List[Step]) -> int:
        """
        Camino de liberación (hoja -> raíz).
        - Arista contada: release(); se elimina al llegar a cero.
        - Arista débil: se descarta solo si el hijo quedó vacío.
        Recorre el camino completo para que los conteos de arriba también bajen,
        pero cada paso solo elimina lo que está probadamente sin referencias.
        Idempotente ante podas parciales de hermanos (release verifica el hijo).
        Retorna el número de aristas eliminadas.
        """
        removed = 0
        for step in reversed(path):
            parent = step.parent
            if step.kind is ValueKind.PRIMITIVE:
                table = parent.primitive
                if table is not None and table.release(step.key, step.child):
                    removed += 1
                    if not table:
                        parent.primitive = None
            else:
                table = parent.reference
                if table is None:
                    continue
                if step.kind is ValueKind.PINNED:
                    dead = table.release(step.key, step.child)
                else:
                    dead = step.child.is_empty() and table.discard(step.key, step.child)
                if dead:
                    removed += 1
                    if not table:
                        parent.reference = None
        return removed

    # =========================================================================
    # INTROSPECCIÓN
    # =========================================================================
    def iter_nodes(self) -> Iterator[TrieNode]:
        """DFS iterativo (sin recursión: caminos de miles de elementos)."""
        stack = [self.root]
        while stack:
            node = stack.pop()
            yield node
            stack.extend(node.children())

    def primitive_entry_count(self) -> int:
        return sum(len(node.primitive) for node in self.iter_nodes() if node.primitive is not None)

    def stats(self) -> Dict[str, int]:
        nodes = primitive = weak = pinned = live = 0
        for node in self.iter_nodes():
            nodes += 1
            if node.primitive is not None:
                primitive += len(node.primitive)
            if node.reference is not None:
                weak += node.reference.weak_count()
                pinned += node.reference.pinned_count()
            if node.handle is not None:
                live += 1
        return {
            "nodes": nodes,
            "primitive_entries": primitive,
            "weak_entries": weak,
            "pinned_entries": pinned,
            "live_handles": live,
        }

"""
src/tuple_core/kernel/cache.py
Caché Canónico de Tuplas v1.0.
Hash Consing por camino: secuencias idénticas elemento a elemento
reciben el MISMO handle; cualquier diferencia (valor, longitud, orden) da otro.

Ciclo de vida:
- intern() recorre el trie, y si el nodo terminal no tiene handle vivo, emite
  uno nuevo, retiene las aristas contadas del camino y le adjunta un finalizer.
- Cuando el último poseedor suelta el handle, el finalizer AGENDA la poda.
  Los callbacks del GC pueden llegar en cualquier hilo y en mitad de un
  recorrido, así que nunca mutan el trie directamente: la cola pendiente se
  drena bajo el candado, fuera de cualquier mutación en curso.
"""
import logging
import threading
import weakref
from collections import deque
from contextlib import contextmanager
from functools import partial
from typing import Any, Callable, Deque, Dict, Iterable, List, Optional, Tuple

from ..config import DEFAULT_CACHE_NAME, DEFAULT_PRIMITIVE_TYPES
from .handle import TupleHandle
from .trie import PathTrie, Step

logger = logging.getLogger(__name__)


def _release_handle(path: List[Step], ref: weakref.ref):
    """Rutina de reclamación de un handle muerto."""
    terminal = path[-1].child
    # Un handle más nuevo para el mismo camino pudo emitirse antes de drenar
    if terminal.handle_ref is ref:
        terminal.handle_ref = None
    removed = PathTrie.prune(path)
    logger.debug("Reclaimed tuple of length %d (%d edges pruned)", len(path), removed)


def _make_scheduler(cache_ref: weakref.ref) -> Callable[[Callable[[], Any]], None]:
    # El trie y los finalizers solo guardan un weakref al caché
    def schedule(job: Callable[[], Any]):
        cache = cache_ref()
        if cache is not None:
            cache._schedule(job)
    return schedule


class TupleCache:
    """
    Espacio canónico de tuplas. Se construye explícitamente y se inyecta
    a quien necesite internar (no hay singleton de módulo).
    """

    def __init__(self, primitive_types: Optional[Iterable[type]] = None, name: str = DEFAULT_CACHE_NAME):
        types = DEFAULT_PRIMITIVE_TYPES
        if primitive_types is not None:
            extra = []
            for tp in primitive_types:
                if not isinstance(tp, type):
                    raise TypeError(f"primitive_types requiere clases, se recibió {tp!r}")
                if tp not in types and tp not in extra:
                    extra.append(tp)
            types = types + tuple(extra)

        self.name = name
        self.primitive_types: Tuple[type, ...] = types

        # Candado Reentrante: un callback del GC puede llegar en el mismo hilo
        self._lock = threading.RLock()
        self._pending: Deque[Callable[[], Any]] = deque()
        self._busy = 0

        self._scheduler = _make_scheduler(weakref.ref(self))
        self._trie = PathTrie(types, self._scheduler)

        # Tupla nula: permanente, retenida por el propio caché
        self._null = TupleHandle(())
        self._trie.root.handle_ref = weakref.ref(self._null)

    # =========================================================================
    # API PÚBLICA
    # =========================================================================
    @property
    def null(self) -> TupleHandle:
        return self._null

    def __call__(self, *elements: Any) -> TupleHandle:
        return self.intern(elements)

    def intern(self, elements: Iterable[Any]) -> TupleHandle:
        """
        Crea o recupera el handle canónico de 'elements'.
        """
        values = tuple(elements)
        if not values:
            return self._null

        with self._exclusive():
            node, path = self._trie.walk(values)
            handle = node.handle
            if handle is None:
                handle = self._issue(node, values, path)
            return handle

    def get(self, elements: Iterable[Any]) -> Optional[TupleHandle]:
        """Handle vivo para 'elements' o None. No crea estado en el trie."""
        values = tuple(elements)
        if not values:
            return self._null

        with self._exclusive():
            node = self._trie.lookup(values)
            return node.handle if node is not None else None

    def flush(self) -> int:
        """Ejecuta ya las reclamaciones pendientes. Retorna cuántas corrieron."""
        with self._lock:
            if self._busy:
                return 0
            return self._drain()

    def live_entry_count(self) -> int:
        """Nodos con clave primitiva retenidos actualmente."""
        with self._quiesced():
            return self._trie.primitive_entry_count()

    def stats(self) -> Dict[str, Any]:
        """Introspección para monitoreo de salud."""
        with self._quiesced():
            report: Dict[str, Any] = {"name": self.name}
            report.update(self._trie.stats())
            report["pending"] = len(self._pending)
            return report

    def __repr__(self):
        return f"<{type(self).__name__} {self.name!r}>"

    # =========================================================================
    # EMISIÓN Y RECLAMACIÓN
    # =========================================================================
    def _issue(self, node, values: Tuple[Any, ...], path: List[Step]) -> TupleHandle:
        handle = TupleHandle(values)
        ref = weakref.ref(handle)
        node.handle_ref = ref
        PathTrie.retain(path)

        finalizer = weakref.finalize(handle, self._scheduler, partial(_release_handle, path, ref))
        # Al cerrar el intérprete no hay nada que podar
        finalizer.atexit = False

        logger.debug("Issued tuple of length %d in %s", len(values), self.name)
        return handle

    @contextmanager
    def _exclusive(self):
        with self._lock:
            self._busy += 1
            try:
                yield
            finally:
                self._busy -= 1
                if not self._busy:
                    self._drain()

    @contextmanager
    def _quiesced(self):
        """
        Drena lo pendiente y luego recorre el trie en modo exclusivo:
        un finalizer del GC a mitad del recorrido solo encola.
        """
        with self._lock:
            if not self._busy:
                self._drain()
            with self._exclusive():
                yield

    def _schedule(self, job: Callable[[], Any]):
        """
        Punto de entrada de los callbacks del GC (finalizers y weakrefs).
        Si otro hilo tiene el candado, el trabajo queda en cola y lo drenará
        la siguiente operación exclusiva.
        """
        self._pending.append(job)
        if not self._lock.acquire(blocking=False):
            return
        try:
            if not self._busy:
                self._drain()
        finally:
            self._lock.release()

    def _drain(self) -> int:
        """Requiere el candado tomado y ninguna mutación en curso."""
        ran = 0
        self._busy += 1
        try:
            while self._pending:
                job = self._pending.popleft()
                try:
                    job()
                except Exception:
                    # Los callbacks del GC no deben propagar: se registra y se sigue
                    logger.exception("Reclamation job failed in %s", self.name)
                ran += 1
        finally:
            self._busy -= 1
        return ran

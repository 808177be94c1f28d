"""
src/tuple_core/kernel/handle.py
Handle Canónico.
Token opaco e inmutable: la IDENTIDAD del objeto es la igualdad de la tupla.
"""
from typing import Any, Iterator, Tuple


class TupleHandle:
    """
    No redefine __eq__ ni __hash__: se heredan los de object (identidad),
    que es exactamente la semántica canónica.

    Conserva sus elementos. Mientras el handle viva, los objetos usados como
    clave siguen vivos y su camino en el trie no puede expirar.
    """
    __slots__ = ('_items', '__weakref__')

    def __init__(self, items: Tuple[Any, ...]):
        self._items = items

    def __len__(self) -> int:
        return len(self._items)

    def __iter__(self) -> Iterator[Any]:
        return iter(self._items)

    def __getitem__(self, index):
        return self._items[index]

    # Copiar un handle canónico debe devolver el mismo handle
    def __copy__(self):
        return self

    def __deepcopy__(self, memo):
        return self

    def __repr__(self):
        inner = ", ".join(repr(item) for item in self._items)
        return f"Tuple({inner})"

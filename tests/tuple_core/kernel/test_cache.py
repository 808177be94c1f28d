"""
tests/tuple_core/kernel/test_cache.py
Suite de Identidad Canónica.
Verifica: Tupla nula, sensibilidad a valores/identidades, centinelas de ausencia,
prefijos y subconjuntos alterados.
"""
import unittest
from tuple_core.kernel.cache import TupleCache
from tuple_core.kernel.handle import TupleHandle
from tuple_core.kinds import MISSING


class Box:
    """Objeto con identidad que admite weakref."""

    def __init__(self, value=None):
        self.value = value


def interpolated(n, every, obj_factory):
    """k % every != 0 -> objeto, resto -> entero."""
    return [obj_factory(k) if k % every else k for k in range(n)]


def interpolated_inverse(n, every, obj_factory):
    return [k if k % every else obj_factory(k) for k in range(n)]


class TestNullTuple(unittest.TestCase):

    def setUp(self):
        self.cache = TupleCache()

    def test_null_is_singleton(self):
        """La tupla vacía es siempre el mismo handle."""
        self.assertIs(self.cache(), self.cache())
        self.assertIs(self.cache.intern([]), self.cache.null)
        self.assertIs(self.cache.intern(iter(())), self.cache.null)

    def test_null_has_no_elements(self):
        self.assertEqual(len(self.cache.null), 0)
        self.assertEqual(list(self.cache.null), [])

    def test_null_survives_collection(self):
        import gc
        null_id = id(self.cache())
        gc.collect()
        self.assertEqual(id(self.cache()), null_id)


class TestPrimitiveIdentity(unittest.TestCase):

    def setUp(self):
        self.cache = TupleCache()

    def test_identical_primitives(self):
        """Dos copias independientes de la misma secuencia -> mismo handle."""
        for i in range(1, 100):
            numbers = list(range(i))
            a = numbers[:]
            b = numbers[:]
            self.assertIs(self.cache(*a), self.cache(*b))

    def test_non_identical_primitives(self):
        """Cambiar un elemento en la mitad -> handle distinto."""
        for i in range(1, 100):
            numbers = list(range(i))
            a = numbers[:]
            b = numbers[:]
            b[i // 2] = "CHANGED"
            self.assertIsNot(self.cache(*a), self.cache(*b))

    def test_concrete_scenario(self):
        t1 = self.cache.intern([1, 2, 3])
        t2 = self.cache.intern([1, 2, 3])
        self.assertIs(t1, t2)
        self.assertIsNot(self.cache.intern([1, 2, 3]), self.cache.intern([1, 9, 3]))
        self.assertIsNot(self.cache.intern([1, 2]), self.cache.intern([1, 2, 3]))

    def test_raw_value_keys(self):
        """0 y "0" son claves distintas; 1, 1.0 y True también."""
        self.assertIsNot(self.cache(0), self.cache("0"))
        self.assertIsNot(self.cache(1), self.cache(True))
        self.assertIsNot(self.cache(1), self.cache(1.0))
        self.assertIsNot(self.cache(b"a"), self.cache("a"))

    def test_nan_is_one_value(self):
        """Todos los NaN flotantes ocupan la misma clave."""
        self.assertIs(self.cache(float("nan")), self.cache(float("nan")))

    def test_complex_nan_is_one_value(self):
        """Un complejo con parte NaN (real o imaginaria) también es estable."""
        self.assertIs(self.cache(complex("nan")), self.cache(complex("nan")))
        self.assertIs(self.cache(complex(1, float("nan"))), self.cache(complex(1, float("nan"))))
        self.assertIsNot(self.cache(complex("nan")), self.cache(complex(0, float("nan"))))
        self.assertIsNot(self.cache(complex("nan")), self.cache(float("nan")))
        self.assertIs(self.cache(1 + 2j), self.cache(complex(1, 2)))

    def test_primitive_subclasses_keep_identity(self):
        """Una subclase de int con estado propio no se fusiona por valor."""

        class TaggedInt(int):
            pass

        x, y = TaggedInt(1), TaggedInt(1)
        x.tag, y.tag = "x", "y"
        self.assertIsNot(self.cache(x), self.cache(y))
        self.assertIs(self.cache(x), self.cache(x))
        self.assertIsNot(self.cache(x), self.cache(1))

    def test_order_matters(self):
        self.assertIsNot(self.cache(1, 2), self.cache(2, 1))

    def test_handle_usable_as_key(self):
        registry = {self.cache("a", 1): "first"}
        self.assertEqual(registry[self.cache("a", 1)], "first")
        self.assertNotIn(self.cache("a", 2), registry)


class TestAbsenceSentinels(unittest.TestCase):

    def setUp(self):
        self.cache = TupleCache()

    def test_none_vs_missing(self):
        self.assertIsNot(self.cache(None), self.cache(MISSING))
        self.assertIs(self.cache(None), self.cache(None))
        self.assertIs(self.cache(MISSING), self.cache(MISSING))

    def test_sentinels_in_position(self):
        self.assertIsNot(self.cache(1, None, 2), self.cache(1, MISSING, 2))


class TestReferenceIdentity(unittest.TestCase):

    def setUp(self):
        self.cache = TupleCache()

    def test_identical_weak_objects(self):
        for i in range(1, 100):
            objects = [Box(k) for k in range(i)]
            self.assertIs(self.cache(*objects[:]), self.cache(*objects[:]))

    def test_identical_pinned_objects(self):
        """dict/list no admiten weakref: se siguen comparando por identidad."""
        for i in range(1, 100):
            objects = [{} for _ in range(i)]
            self.assertIs(self.cache(*objects[:]), self.cache(*objects[:]))

    def test_non_identical_objects(self):
        for i in range(1, 100):
            objects = [Box() for _ in range(i)]
            a = objects[:]
            b = objects[:]
            b[i // 2] = Box()
            self.assertIsNot(self.cache(*a), self.cache(*b))

    def test_same_shape_is_not_same_value(self):
        """Dos dicts vacíos distintos jamás se fusionan."""
        self.assertIsNot(self.cache({}), self.cache({}))
        self.assertIsNot(self.cache([1]), self.cache([1]))

    def test_value_eq_objects_are_kept_apart(self):
        """Objetos con __eq__ por valor siguen indexándose por identidad."""
        a = tuple([1, 2])
        b = tuple([1, 2])
        self.assertEqual(a, b)
        self.assertIsNot(self.cache(a), self.cache(b))
        self.assertIs(self.cache(a), self.cache(a))

    def test_concrete_object_scenario(self):
        obj = {}
        self.assertIs(self.cache(obj, 1), self.cache(obj, 1))
        self.assertIsNot(self.cache(obj, 1), self.cache({}, 1))

    def test_primitive_vs_object_swap(self):
        box = Box(5)
        self.assertIsNot(self.cache(5), self.cache(box))
        self.assertIsNot(self.cache(1, box), self.cache(1, 5))


class TestInterpolated(unittest.TestCase):
    """Mezclas primitivo/objeto con distintas periodicidades."""

    def setUp(self):
        self.cache = TupleCache()

    def test_identical_interpolated(self):
        for every in (2, 3, 4, 5):
            for i in range(1, 100):
                mixed = interpolated(i, every, lambda k: {k: k})
                self.assertIs(self.cache(*mixed[:]), self.cache(*mixed[:]))

                mixed = interpolated_inverse(i, every, lambda k: Box(k))
                self.assertIs(self.cache(*mixed[:]), self.cache(*mixed[:]))

    def test_non_identical_interpolated(self):
        for every in (2, 3, 4, 5):
            for factory in (lambda k: {k: k}, lambda k: Box(k)):
                for i in range(1, 100):
                    mixed = interpolated(i, every, factory)
                    b = mixed[:]
                    b[i // 2] = "CHANGED"
                    self.assertIsNot(self.cache(*mixed), self.cache(*b))

                    mixed = interpolated_inverse(i, every, factory)
                    b = mixed[:]
                    b[i // 2] = "CHANGED"
                    self.assertIsNot(self.cache(*mixed), self.cache(*b))


class TestSubsets(unittest.TestCase):
    """Un prefijo propio nunca es la misma tupla, en cualquier orden de llamada."""

    def setUp(self):
        self.cache = TupleCache()

    def _check_prefixes(self, items, switched=False):
        for i in range(1, len(items)):
            prefix = items[:i]
            if switched:
                self.assertIsNot(self.cache(*prefix), self.cache(*items))
            else:
                self.assertIsNot(self.cache(*items), self.cache(*prefix))

    def test_scalar_subsets(self):
        numbers = list(range(100))
        self._check_prefixes(numbers)
        self._check_prefixes(numbers, switched=True)

    def test_object_subsets(self):
        objects = [Box() for _ in range(100)]
        self._check_prefixes(objects)
        self._check_prefixes(objects, switched=True)

        pinned = [{} for _ in range(100)]
        self._check_prefixes(pinned)
        self._check_prefixes(pinned, switched=True)

    def test_interpolated_subsets(self):
        for every in (2, 3, 4):
            for switched in (False, True):
                self._check_prefixes(interpolated(100, every, lambda k: {k: k}), switched)
                self._check_prefixes(interpolated_inverse(100, every, lambda k: Box(k)), switched)

    def _check_tampered(self, items, switched=False):
        for i in range(1, len(items)):
            tampered = items[:i]
            tampered[i // 2] = "CHANGED"
            if switched:
                self.assertIsNot(self.cache(*tampered), self.cache(*items))
            else:
                self.assertIsNot(self.cache(*items), self.cache(*tampered))

    def test_tampered_subsets(self):
        """Prefijo con un elemento reemplazado != secuencia completa, en ambos órdenes."""
        sequences = [
            list(range(100)),
            [Box() for _ in range(100)],
            [{} for _ in range(100)],
        ]
        for every in (2, 3, 4):
            sequences.append(interpolated(100, every, lambda k: {k: k}))
            sequences.append(interpolated_inverse(100, every, lambda k: Box(k)))
        for items in sequences:
            self._check_tampered(items)
            self._check_tampered(items, switched=True)


class TestLookup(unittest.TestCase):

    def setUp(self):
        self.cache = TupleCache()

    def test_get_returns_live_handle(self):
        t = self.cache(1, "a")
        self.assertIs(self.cache.get([1, "a"]), t)

    def test_get_does_not_create(self):
        self.assertIsNone(self.cache.get([7, 8, 9]))
        self.assertEqual(self.cache.live_entry_count(), 0)

    def test_get_prefix_without_handle(self):
        """El nodo de un prefijo existe pero no tiene handle propio."""
        t = self.cache(1, 2, 3)
        self.assertIsNone(self.cache.get([1, 2]))
        self.assertIs(self.cache.get((1, 2, 3)), t)

    def test_get_empty(self):
        self.assertIs(self.cache.get([]), self.cache.null)


class TestConfiguration(unittest.TestCase):

    def test_extra_primitive_types(self):
        """Decimal configurado como primitivo: se compara por valor."""
        from decimal import Decimal
        by_value = TupleCache(primitive_types=[Decimal])
        self.assertIs(by_value(Decimal("1.5")), by_value(Decimal("1.5")))

        by_identity = TupleCache()
        self.assertIsNot(by_identity(Decimal("1.5")), by_identity(Decimal("1.5")))

    def test_invalid_primitive_types(self):
        with self.assertRaises(TypeError):
            TupleCache(primitive_types=["int"])

    def test_unhashable_primitive_type_leaves_no_residue(self):
        cache = TupleCache(primitive_types=[list])
        with self.assertRaises(TypeError):
            cache.intern([1, 2, [3]])
        self.assertEqual(cache.live_entry_count(), 0)

    def test_non_iterable(self):
        with self.assertRaises(TypeError):
            TupleCache().intern(42)

    def test_caches_are_independent(self):
        a, b = TupleCache(name="a"), TupleCache(name="b")
        self.assertIsNot(a(1, 2), b(1, 2))
        self.assertIsInstance(a(1, 2), TupleHandle)
        self.assertIn("'a'", repr(a))


if __name__ == "__main__":
    unittest.main()

from bisect import bisect_left, insort
from collections.abc import Callable, Iterator, MutableMapping
from typing import Generic, TypeVar

V = TypeVar("V")


class AddressSortedMap(MutableMapping[str, V], Generic[V]):
    """
    Mapping keyed by contract address with lexicographic iteration order.

    The key order is what the batched on-chain query is positionally
    aligned to, so it is kept sorted on every insert instead of being
    sorted at read time.

    Parameters
    ----------
    items : dict[str, V] | None
        Initial content
    """

    def __init__(self, items: dict[str, V] | None = None):
        self._data: dict[str, V] = {}
        self._keys: list[str] = []
        for key, value in (items or {}).items():
            self[key] = value

    def __getitem__(self, key: str) -> V:
        return self._data[key]

    def __setitem__(self, key: str, value: V) -> None:
        if key not in self._data:
            insort(self._keys, key)
        self._data[key] = value

    def __delitem__(self, key: str) -> None:
        del self._data[key]
        self._keys.pop(bisect_left(self._keys, key))

    def __iter__(self) -> Iterator[str]:
        return iter(list(self._keys))

    def __len__(self) -> int:
        return len(self._keys)

    def __repr__(self) -> str:
        return f"AddressSortedMap({dict(self.items())!r})"

    def keys_list(self) -> list[str]:
        """
        Return a snapshot of the keys in sorted order.

        Returns
        -------
        list[str]
            Sorted addresses
        """
        return list(self._keys)

    def setdefault_factory(self, key: str, factory: Callable[[], V]) -> V:
        """
        Return the value for ``key``, creating it with ``factory()`` if absent.

        Parameters
        ----------
        key : str
            Contract address
        factory : Callable[[], V]
            Builds the initial value

        Returns
        -------
        V
            Existing or newly created value
        """
        if key not in self._data:
            self[key] = factory()
        return self._data[key]

"""Ordered, read-only result container."""

from collections.abc import Callable, Iterable, Iterator
from typing import Any, Generic, TypeVar, overload

T = TypeVar("T")
U = TypeVar("U")


class Collection(Generic[T]):
    """Results of a query, in the order the database returned them."""

    def __init__(self, items: Iterable[T] | None = None) -> None:
        self._items: list[T] = list(items) if items is not None else []

    def __iter__(self) -> Iterator[T]:
        return iter(self._items)

    def __len__(self) -> int:
        return len(self._items)

    @overload
    def __getitem__(self, index: int) -> T: ...

    @overload
    def __getitem__(self, index: slice) -> "Collection[T]": ...

    def __getitem__(self, index: int | slice) -> "T | Collection[T]":
        if isinstance(index, slice):
            return Collection(self._items[index])
        return self._items[index]

    def __eq__(self, other: object) -> bool:
        if isinstance(other, Collection):
            return self._items == other._items
        return NotImplemented

    def __repr__(self) -> str:
        return f"Collection({self._items!r})"

    def first(self) -> T | None:
        return self._items[0] if self._items else None

    def count(self) -> int:
        return len(self._items)

    def to_list(self) -> list[T]:
        return list(self._items)

    def map(self, callback: Callable[[T], U]) -> list[U]:
        return [callback(item) for item in self._items]

    def to_dict(self) -> list[Any]:
        """Serialize every element that knows how to, others as they are."""
        return [item.to_dict() if hasattr(item, "to_dict") else item for item in self._items]

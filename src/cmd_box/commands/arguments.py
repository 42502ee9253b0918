"""Case-insensitive argument mapping."""

from collections.abc import Iterator, Mapping, MutableMapping
from typing import Any


class ArgumentMap(MutableMapping[str, Any]):
    """A mapping of argument names to values with case-insensitive keys.

    The spelling of the most recently set key is retained for iteration.

    Example:
        args = ArgumentMap({"User": "admin"})
        args["user"]  # 'admin'
    """

    def __init__(self, data: Mapping[str, Any] | None = None, **kwargs: Any) -> None:
        self._store: dict[str, tuple[str, Any]] = {}
        if data is not None:
            self.update(data)
        if kwargs:
            self.update(kwargs)

    def __setitem__(self, key: str, value: Any) -> None:
        self._store[key.casefold()] = (key, value)

    def __getitem__(self, key: str) -> Any:
        return self._store[key.casefold()][1]

    def __delitem__(self, key: str) -> None:
        del self._store[key.casefold()]

    def __contains__(self, key: object) -> bool:
        return isinstance(key, str) and key.casefold() in self._store

    def __iter__(self) -> Iterator[str]:
        return (key for key, _ in self._store.values())

    def __len__(self) -> int:
        return len(self._store)

    def copy(self) -> "ArgumentMap":
        return ArgumentMap(self)

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({dict(self.items())!r})"

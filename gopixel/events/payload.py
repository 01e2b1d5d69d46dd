from typing import Any, Mapping

from gopixel.errors import PayloadFrozenError


class Payload(dict):
    """
    Key/value body of an event. Values are primitives, nested payloads or None.

    Built incrementally with chained set() calls:

        Payload().set("width", 1920).set("screen", Payload().set("depth", 24))

    Only Payload values are treated as nested payloads when cleaning; a plain
    dict is kept as an opaque value.
    """

    _frozen = False

    def set(self, key: str, value: Any) -> "Payload":
        """
        Store value under key, last write wins.

        Returns:
            Payload: self, for chaining.
        """
        self[key] = value
        return self

    def size(self) -> int:
        return len(self)

    @property
    def is_frozen(self) -> bool:
        return self._frozen

    def clean(self) -> "Payload":
        """
        Return a copy without None values, at every nesting level.

        Pruning is key by key: a nested payload whose fields are all None
        is kept as an empty payload under its key.
        """
        cleaned = Payload()

        for key, value in self.items():
            if isinstance(value, Payload):
                cleaned[key] = value.clean()
            elif value is not None:
                cleaned[key] = value

        return cleaned

    def freeze(self) -> "Payload":
        """
        Make this payload and every nested payload read-only.
        """
        for value in self.values():
            if isinstance(value, Payload):
                value.freeze()
        self._frozen = True
        return self

    @classmethod
    def from_mapping(cls, mapping: Mapping[str, Any]) -> "Payload":
        """
        Build a payload from a mapping, converting nested mappings into payloads.
        """
        payload = cls()
        for key, value in mapping.items():
            if isinstance(value, Mapping) and not isinstance(value, Payload):
                value = cls.from_mapping(value)
            payload[key] = value
        return payload

    def _check_writable(self, key: Any = "") -> None:
        if self._frozen:
            raise PayloadFrozenError(str(key))

    def __setitem__(self, key: str, value: Any) -> None:
        self._check_writable(key)
        super().__setitem__(key, value)

    def __delitem__(self, key: str) -> None:
        self._check_writable(key)
        super().__delitem__(key)

    def __ior__(self, other):
        self._check_writable()
        return super().__ior__(other)

    def update(self, *args, **kwargs) -> None:
        self._check_writable()
        super().update(*args, **kwargs)

    def setdefault(self, key, default=None):
        self._check_writable(key)
        return super().setdefault(key, default)

    def pop(self, key, *args):
        self._check_writable(key)
        return super().pop(key, *args)

    def popitem(self):
        self._check_writable()
        return super().popitem()

    def clear(self) -> None:
        self._check_writable()
        super().clear()

    def __repr__(self) -> str:
        return f"Payload({dict.__repr__(self)})"

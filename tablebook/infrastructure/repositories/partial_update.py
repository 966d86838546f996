# tablebook/infrastructure/repositories/partial_update.py

from typing import Any, Iterable, Mapping

from sqlalchemy import Update, update


class PartialUpdate:
    """
    Sparse set of column values for an UPDATE.

    Only the fields present are written; everything else keeps its stored
    value. Build it from ``model_dump(exclude_unset=True)`` so that fields
    the client did not send never reach the statement.
    """

    def __init__(self, allowed_fields: Iterable[str], values: Mapping[str, Any] | None = None):
        self._allowed = frozenset(allowed_fields)
        self._values: dict[str, Any] = {}
        for name, value in (values or {}).items():
            self.set(name, value)

    def set(self, name: str, value: Any) -> "PartialUpdate":
        if name not in self._allowed:
            raise KeyError(f"Field {name!r} cannot be updated")
        self._values[name] = value
        return self

    def has(self, name: str) -> bool:
        return name in self._values

    def get(self, name: str, default: Any = None) -> Any:
        return self._values.get(name, default)

    def is_empty(self) -> bool:
        return not self._values

    def as_dict(self) -> dict[str, Any]:
        return dict(self._values)

    def to_statement(self, model, record_id: str) -> Update:
        return (
            update(model)
            .where(model.id == record_id)
            .values(**self._values)
        )

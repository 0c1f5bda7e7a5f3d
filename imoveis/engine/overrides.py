"""Session record of fields the user typed in directly.

Scoped to one (property, scenario) pair; rebinding to another pair starts over.
Nothing here is persisted.
"""

from imoveis.models.entry import Cenario, FieldLabel, label_value


class OverrideTracker:
    def __init__(self):
        self._scope: tuple[str, Cenario] | None = None
        self._fields: set[str] = set()

    @property
    def scope(self) -> tuple[str, Cenario] | None:
        return self._scope

    @property
    def fields(self) -> frozenset[str]:
        return frozenset(self._fields)

    def bind(self, imovel: str | None, cenario: Cenario) -> bool:
        """Point the tracker at a (property, scenario); clears it if that changed.

        Returns True when the scope changed.
        """
        scope = (imovel, cenario) if imovel is not None else None
        if scope == self._scope:
            return False
        self._scope = scope
        self._fields.clear()
        return True

    def mark_overridden(self, field: FieldLabel | str) -> None:
        self._fields.add(label_value(field))

    def clear_override(self, field: FieldLabel | str) -> None:
        self._fields.discard(label_value(field))

    def is_overridden(self, field: FieldLabel | str) -> bool:
        return label_value(field) in self._fields

    def reset(self) -> None:
        self._fields.clear()

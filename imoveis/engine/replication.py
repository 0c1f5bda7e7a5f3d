"""Read-through from the planned scenario into the actual one.

Executado starts from the Projetado assumptions for a few fields: a lookup miss
there returns the Projetado value instead, without creating an Executado entry.
"""

from decimal import Decimal

from imoveis.engine.accessor import ZERO, EntryAccessor
from imoveis.models.entry import Cenario, FieldLabel, label_value

INHERITED_FIELDS: tuple[FieldLabel, ...] = (
    FieldLabel.ENTRADA,
    FieldLabel.COMISSAO_LEILOEIRO,
)


def _inherits(label: FieldLabel | str) -> bool:
    text = label_value(label)
    return any(member.value == text for member in INHERITED_FIELDS)


class ScenarioReplicator:
    def __init__(self, accessor: EntryAccessor):
        self.accessor = accessor

    def resolve(self, imovel: str, cenario: Cenario, label: FieldLabel | str) -> tuple[Decimal, bool]:
        """Effective magnitude of a field and whether it came from Projetado."""
        entry = self.accessor.find(imovel, cenario, label)
        if entry is not None:
            return entry.magnitude, False
        if cenario == Cenario.EXECUTADO and _inherits(label):
            planned = self.accessor.find(imovel, Cenario.PROJETADO, label)
            if planned is not None:
                return planned.magnitude, True
        return ZERO, False

    def effective_magnitudes(self, imovel: str, cenario: Cenario) -> dict[str, Decimal]:
        """Stored magnitudes of the scenario, with inherited fields filled in."""
        values = self.accessor.magnitudes(imovel, cenario)
        if cenario != Cenario.EXECUTADO:
            return values
        for label in INHERITED_FIELDS:
            if label.value not in values:
                value, inherited = self.resolve(imovel, cenario, label)
                if inherited:
                    values[label.value] = value
        return values

    def inherited_fields(self, imovel: str, cenario: Cenario) -> frozenset[str]:
        if cenario != Cenario.EXECUTADO:
            return frozenset()
        return frozenset(
            label.value for label in INHERITED_FIELDS
            if self.resolve(imovel, cenario, label)[1]
        )

"""
Declarative mappings for the synchronized entities.

An EntityMapping says where rows come from, where they go, which columns
form the business key, which column carries the modification timestamp
and how each source value is coerced before it is written.

Timestamps are truncated to whole seconds because the destination keeps
second precision; comparing an untruncated source value against the
stored one would make every re-run look like an update.
"""

from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Any

from .errors import RowValidationError
from .models import BusinessKey

TEXT = "text"
TIMESTAMP = "timestamp"
NUMBER = "number"

FIELD_KINDS = (TEXT, TIMESTAMP, NUMBER)


def normalize_timestamp(value: Any) -> datetime | None:
    """
    Coerce a driver timestamp to a naive, second-precision datetime.

    Aware values are converted to UTC first. ISO strings are parsed.
    Returns None for None or blank strings.
    """
    if value is None:
        return None
    if isinstance(value, str):
        if not value.strip():
            return None
        value = datetime.fromisoformat(value.strip())
    if not isinstance(value, datetime):
        raise TypeError(f"Expected datetime, got {type(value).__name__}: {value!r}")
    if value.tzinfo is not None:
        value = value.astimezone(UTC).replace(tzinfo=None)
    return value.replace(microsecond=0)


def _coerce_text(value: Any) -> Any:
    if value is None:
        return None
    if isinstance(value, str) and not value.strip():
        return None
    return value


def _coerce_number(value: Any) -> Any:
    if isinstance(value, str):
        return value.strip() or None
    return value


_COERCERS = {
    TEXT: _coerce_text,
    TIMESTAMP: normalize_timestamp,
    NUMBER: _coerce_number,
}


@dataclass(frozen=True)
class FieldMapping:
    """One source column copied into one destination column."""

    column: str
    source_column: str | None = None
    kind: str = TEXT

    def __post_init__(self):
        if self.kind not in FIELD_KINDS:
            raise ValueError(f"Unknown field kind {self.kind!r} for {self.column}")

    @property
    def source_name(self) -> str:
        return self.source_column or self.column

    def coerce(self, value: Any) -> Any:
        return _COERCERS[self.kind](value)


@dataclass(frozen=True)
class EntityMapping:
    """
    Everything the sync components need to know about one entity.

    Source rows are fetched with each field aliased to its destination
    column name, so rows on both sides share the same keys.
    """

    name: str
    source_table: str
    destination_table: str
    fields: tuple[FieldMapping, ...]
    modified_field: str
    key_fields: tuple[str, str | None]
    epoch_default: datetime
    watermark_column: str = "source_modified_at"
    synced_at_column: str = "synced_at"
    destination_key_columns: tuple[str, ...] | None = None
    require_secondary_key: bool = False
    static_values: dict[str, Any] = field(default_factory=dict)
    insert_only_values: dict[str, Any] = field(default_factory=dict)
    watermark_scope: dict[str, Any] = field(default_factory=dict)
    source_filter: str | None = None

    def __post_init__(self):
        columns = {f.column for f in self.fields}
        missing = [
            name for name in (self.modified_field, *self.key_fields)
            if name is not None and name not in columns
        ]
        if missing:
            raise ValueError(f"Entity {self.name!r} references unmapped fields: {missing}")

    @property
    def modified_source_column(self) -> str:
        return self.get_field(self.modified_field).source_name

    @property
    def key_columns(self) -> tuple[str, ...]:
        """Destination columns the business key is matched on."""
        if self.destination_key_columns:
            return self.destination_key_columns
        return tuple(name for name in self.key_fields if name is not None)

    def get_field(self, column: str) -> FieldMapping:
        for f in self.fields:
            if f.column == column:
                return f
        raise KeyError(f"Entity {self.name!r} has no field {column!r}")

    def modified_at(self, row: dict[str, Any]) -> datetime | None:
        """Modification timestamp of a source row, normalized."""
        return normalize_timestamp(row.get(self.modified_field))

    def business_key(self, row: dict[str, Any]) -> BusinessKey:
        """
        Build the business key of a source row.

        Raises:
            RowValidationError: If the primary part is missing or blank, or
                the secondary part is missing while the entity requires it.
        """
        primary_field, secondary_field = self.key_fields
        primary = self.get_field(primary_field).coerce(row.get(primary_field))
        if primary is None or not str(primary).strip():
            raise RowValidationError(f"{self.name}: missing {primary_field}")

        secondary = None
        if secondary_field is not None:
            secondary = self.get_field(secondary_field).coerce(row.get(secondary_field))
            if secondary is None and self.require_secondary_key:
                raise RowValidationError(f"{self.name}: missing {secondary_field}")

        return BusinessKey(str(primary), secondary)

    def key_values(self, key: BusinessKey) -> tuple[Any, ...]:
        """Values matching ``key_columns`` for a business key."""
        if self.destination_key_columns:
            return (key.primary,) if len(self.destination_key_columns) == 1 else key.as_tuple()
        return key.as_tuple() if self.key_fields[1] is not None else (key.primary,)

    def map_row(self, row: dict[str, Any]) -> dict[str, Any]:
        """Destination column values for a source row (without synced_at)."""
        mapped = {f.column: f.coerce(row.get(f.column)) for f in self.fields}
        mapped.update(self.static_values)
        mapped[self.watermark_column] = self.modified_at(row)
        return mapped


@dataclass(frozen=True)
class ApontamentoMapping(EntityMapping):
    """
    Time entries are matched on a derived external id.

    The id joins the ticket number, task number and activity date, so
    two entries of the same task on different dates stay distinct.
    """

    external_id_prefix: str = "AMSapontamento"

    def business_key(self, row: dict[str, Any]) -> BusinessKey:
        chamado = _coerce_text(row.get("nro_chamado"))
        tarefa = _coerce_text(row.get("nro_tarefa"))
        if chamado is None:
            raise RowValidationError(f"{self.name}: missing nro_chamado")
        if tarefa is None:
            raise RowValidationError(f"{self.name}: missing nro_tarefa")

        atividade = normalize_timestamp(row.get("data_atividade"))
        parts = [
            self.external_id_prefix,
            str(chamado).strip(),
            str(tarefa).strip(),
            _utc_millis(atividade) if atividade else "sem_data",
        ]
        return BusinessKey("|".join(parts))

    def map_row(self, row: dict[str, Any]) -> dict[str, Any]:
        mapped = super().map_row(row)
        mapped["id_externo"] = self.business_key(row).primary
        return mapped


def _utc_millis(value: datetime) -> str:
    """Render a normalized (naive UTC) timestamp as ``2024-03-01T10:00:00.000Z``."""
    return value.isoformat(timespec="milliseconds") + "Z"


def _text(*names: str) -> tuple[FieldMapping, ...]:
    return tuple(FieldMapping(name.lower(), name, TEXT) for name in names)


TICKETS = EntityMapping(
    name="tickets",
    source_table="AMSticketsabertos",
    destination_table="apontamentos_tickets_aranda",
    modified_field="data_ultima_modificacao",
    key_fields=("nro_solicitacao", "data_abertura"),
    epoch_default=datetime(2024, 1, 1),
    fields=(
        *_text(
            "Nro_Solicitacao", "Cod_Tipo", "Ticket_Externo", "Numero_Pai",
            "Caso_Pai", "Organizacao", "Empresa", "Cliente",
        ),
        FieldMapping("usuario_final", "Usuario Final"),
        *_text(
            "Resumo", "Descricao", "Autor", "Solicitante", "Nome_Grupo",
            "Nome_Responsavel", "Categoria", "Item_Configuracao",
        ),
        FieldMapping("data_abertura", "Data_Abertura", TIMESTAMP),
        FieldMapping("data_solucao", "Data_Solucao", TIMESTAMP),
        FieldMapping("data_fechamento", "Data_Fechamento", TIMESTAMP),
        FieldMapping("data_ultima_modificacao", "Data_Ultima_Modificacao", TIMESTAMP),
        FieldMapping("ultima_modificacao", "Ultima_Modificacao"),
        FieldMapping("data_prevista_entrega", "Data Prevista Entrega", TIMESTAMP),
        FieldMapping(
            "data_aprovacao", "Data da aprovação (somente se aprovado)", TIMESTAMP
        ),
        FieldMapping("data_real_entrega", "Data Real da Entrega", TIMESTAMP),
        FieldMapping(
            "data_ultima_nota", "data_ultima_nota (Date-Hour-Minute-Second)", TIMESTAMP
        ),
        FieldMapping(
            "data_ultimo_comentario",
            "data_ultimo_comentario (Date-Hour-Minute-Second)",
            TIMESTAMP,
        ),
        *_text(
            "Status", "Prioridade", "Urgencia", "Impacto", "Chamado_Reaberto",
            "Criado_Via", "Relatado", "Solucao", "Causa_Raiz", "Desc_Ultima_Nota",
            "Desc_Ultimo_Comentario", "LOG",
        ),
        FieldMapping("tempo_gasto_dias", "Tempo_Gasto_Dias", NUMBER),
        FieldMapping("tempo_gasto_horas", "Tempo_Gasto_Horas", NUMBER),
        FieldMapping("tempo_gasto_minutos", "Tempo_Gasto_Minutos", NUMBER),
        *_text("Cod_Resolucao", "Violacao_SLA", "TDA_Cumprido", "TDS_Cumprido"),
        FieldMapping(
            "data_prevista_tda", "data_prevista_tda (Date-Hour-Minute-Second)", TIMESTAMP
        ),
        FieldMapping(
            "data_prevista_tds", "data_prevista_tds (Date-Hour-Minute-Second)", TIMESTAMP
        ),
        *_text("Tempo_Restante_TDA", "Tempo_Restante_TDS"),
        FieldMapping(
            "tempo_restante_tds_em_minutos", "tempo_restante_tds_em_minutos (Sum)", NUMBER
        ),
        FieldMapping("tempo_real_tda", "Tempo_Real_TDA"),
        FieldMapping("total_orcamento", "Total Orçamento (em decimais)", NUMBER),
    ),
)


APONTAMENTOS = ApontamentoMapping(
    name="apontamentos",
    source_table="AMSapontamento",
    destination_table="apontamentos_aranda",
    modified_field="data_ult_modificacao_geral",
    key_fields=("nro_chamado", "nro_tarefa"),
    destination_key_columns=("id_externo",),
    require_secondary_key=True,
    epoch_default=datetime(2024, 2, 28),
    watermark_column="data_ult_modificacao_geral",
    static_values={"origem": "sql_server"},
    insert_only_values={"autor_id": None, "autor_nome": "SQL Server Sync (Incremental)"},
    watermark_scope={"origem": "sql_server"},
    source_filter="([Caso_Grupo] NOT LIKE 'AMS SAP%' OR [Caso_Grupo] IS NULL)",
    fields=(
        *_text(
            "Nro_Chamado", "Tipo_Chamado", "Org_Us_Final", "Categoria",
            "Causa_Raiz", "Solicitante", "Us_Final_Afetado",
        ),
        FieldMapping("data_abertura", "Data_Abertura (Date-Hour-Minute-Second)", TIMESTAMP),
        FieldMapping("data_sistema", "Data_Sistema (Date-Hour-Minute-Second)", TIMESTAMP),
        FieldMapping("data_atividade", "Data_Atividade (Date-Hour-Minute-Second)", TIMESTAMP),
        FieldMapping(
            "data_fechamento", "Data_Fechamento (Date-Hour-Minute-Second)", TIMESTAMP
        ),
        FieldMapping(
            "data_ult_modificacao", "Data_Ult_Modificacao (Date-Hour-Minute-Second)", TIMESTAMP
        ),
        FieldMapping("data_ult_modificacao_geral", "Data_Ult_Modificacao_Geral", TIMESTAMP),
        FieldMapping(
            "data_ult_modificacao_tarefa",
            "Data_Ult_Modificacao_tarefa (Date-Hour-Minute-Second)",
            TIMESTAMP,
        ),
        *_text(
            "Ativi_Interna", "Caso_Estado", "Caso_Grupo", "Nro_Tarefa",
            "Descricao_Tarefa",
        ),
        FieldMapping("tempo_gasto_segundos", "Tempo_Gasto_Segundos", NUMBER),
        FieldMapping("tempo_gasto_minutos", "Tempo_Gasto_Minutos", NUMBER),
        *_text(
            "Tempo_Gasto_Horas", "Item_Configuracao", "Analista_Tarefa",
            "Analista_Caso", "Estado_Tarefa", "Resumo_Tarefa", "Grupo_Tarefa",
            "Problema", "Cod_Resolucao",
        ),
        FieldMapping("log", "LOG", TIMESTAMP),
    ),
)


ENTITIES: dict[str, EntityMapping] = {
    TICKETS.name: TICKETS,
    APONTAMENTOS.name: APONTAMENTOS,
}


def get_entity(name: str) -> EntityMapping:
    """Look up a registered entity mapping by name."""
    try:
        return ENTITIES[name]
    except KeyError:
        raise KeyError(
            f"Unknown entity {name!r}. Known entities: {', '.join(sorted(ENTITIES))}"
        ) from None

"""
Unit tests for entity mappings

Tests verify:
- Timestamp normalization (truncation, aware values, strings)
- Field coercion for text, timestamp and number kinds
- Business key construction and validation
- Row mapping, static and watermark columns
- Entity registry lookup
"""

from datetime import datetime, timedelta, timezone
from decimal import Decimal

import pytest

from fakes import ticket_row
from ticket_sync.entities import (
    APONTAMENTOS,
    ENTITIES,
    NUMBER,
    TEXT,
    TICKETS,
    EntityMapping,
    FieldMapping,
    get_entity,
    normalize_timestamp,
)
from ticket_sync.errors import RowValidationError
from ticket_sync.models import BusinessKey


class TestNormalizeTimestamp:
    """Test timestamp normalization"""

    def test_none_and_blank_become_none(self):
        assert normalize_timestamp(None) is None
        assert normalize_timestamp("") is None
        assert normalize_timestamp("   ") is None

    def test_truncates_to_whole_seconds(self):
        value = datetime(2024, 6, 9, 12, 0, 0, 987654)
        assert normalize_timestamp(value) == datetime(2024, 6, 9, 12, 0, 0)

    def test_aware_value_converted_to_naive_utc(self):
        value = datetime(2024, 6, 9, 9, 0, 0, tzinfo=timezone(timedelta(hours=-3)))
        assert normalize_timestamp(value) == datetime(2024, 6, 9, 12, 0, 0)

    def test_parses_iso_string(self):
        assert normalize_timestamp("2024-06-09T12:00:00") == datetime(2024, 6, 9, 12, 0, 0)

    def test_rejects_non_datetime(self):
        with pytest.raises(TypeError):
            normalize_timestamp(12345)


class TestFieldMapping:
    """Test field coercion"""

    def test_unknown_kind_rejected(self):
        with pytest.raises(ValueError, match="Unknown field kind"):
            FieldMapping("resumo", kind="blob")

    def test_source_name_defaults_to_column(self):
        assert FieldMapping("resumo").source_name == "resumo"
        assert FieldMapping("usuario_final", "Usuario Final").source_name == "Usuario Final"

    def test_blank_text_becomes_none(self):
        field = FieldMapping("resumo", kind=TEXT)
        assert field.coerce("") is None
        assert field.coerce("  \t") is None
        assert field.coerce("Printer down") == "Printer down"

    def test_zero_number_is_kept(self):
        field = FieldMapping("total_orcamento", kind=NUMBER)
        assert field.coerce(0) == 0
        assert field.coerce(Decimal("0.00")) == Decimal("0.00")
        assert field.coerce(None) is None


class TestTicketKeys:
    """Test ticket business keys"""

    def test_key_is_number_and_open_date(self, opened_at):
        row = ticket_row("1001", opened_at, datetime(2024, 6, 1))
        assert TICKETS.business_key(row) == BusinessKey("1001", opened_at)

    def test_open_date_is_optional(self):
        row = ticket_row("1001", None, datetime(2024, 6, 1))
        assert TICKETS.business_key(row) == BusinessKey("1001", None)

    @pytest.mark.parametrize("number", [None, "", "   "])
    def test_missing_number_rejected(self, number, opened_at):
        row = ticket_row(number, opened_at, datetime(2024, 6, 1))
        with pytest.raises(RowValidationError, match="nro_solicitacao"):
            TICKETS.business_key(row)

    def test_key_columns_and_values(self, opened_at):
        key = BusinessKey("1001", opened_at)
        assert TICKETS.key_columns == ("nro_solicitacao", "data_abertura")
        assert TICKETS.key_values(key) == ("1001", opened_at)


class TestTicketMapping:
    """Test ticket row mapping"""

    def test_map_row_sets_watermark_column(self, opened_at):
        modified = datetime(2024, 6, 9, 12, 0, 0, 500000)
        mapped = TICKETS.map_row(ticket_row("1001", opened_at, modified))

        assert mapped["source_modified_at"] == datetime(2024, 6, 9, 12, 0, 0)
        assert mapped["data_ultima_modificacao"] == datetime(2024, 6, 9, 12, 0, 0)
        assert mapped["nro_solicitacao"] == "1001"
        assert "synced_at" not in mapped

    def test_map_row_covers_every_field(self, opened_at):
        mapped = TICKETS.map_row(ticket_row("1001", opened_at, datetime(2024, 6, 9)))
        for field in TICKETS.fields:
            assert field.column in mapped

    def test_missing_attributes_become_none(self, opened_at):
        mapped = TICKETS.map_row(ticket_row("1001", opened_at, datetime(2024, 6, 9), descricao=""))
        assert mapped["descricao"] is None
        assert mapped["total_orcamento"] is None

    def test_modified_source_column(self):
        assert TICKETS.modified_source_column == "Data_Ultima_Modificacao"

    def test_bracketed_source_columns_are_mapped(self):
        assert TICKETS.get_field("data_aprovacao").source_name == (
            "Data da aprovação (somente se aprovado)"
        )
        assert TICKETS.get_field("total_orcamento").kind == NUMBER


class TestApontamentoMapping:
    """Test time entry keys and mapping"""

    def _row(self, **overrides):
        row = {
            "nro_chamado": "55012",
            "nro_tarefa": "7",
            "data_atividade": datetime(2024, 3, 1, 10, 0, 0),
            "data_ult_modificacao_geral": datetime(2024, 3, 2, 8, 15, 0),
            "caso_grupo": "AMS Infra",
        }
        row.update(overrides)
        return row

    def test_key_is_derived_external_id(self):
        key = APONTAMENTOS.business_key(self._row())
        assert key == BusinessKey("AMSapontamento|55012|7|2024-03-01T10:00:00.000Z")

    def test_missing_activity_date_uses_placeholder(self):
        key = APONTAMENTOS.business_key(self._row(data_atividade=None))
        assert key.primary.endswith("|sem_data")

    @pytest.mark.parametrize("column", ["nro_chamado", "nro_tarefa"])
    def test_both_numbers_required(self, column):
        with pytest.raises(RowValidationError, match=column):
            APONTAMENTOS.business_key(self._row(**{column: " "}))

    def test_map_row_adds_external_id_and_origin(self):
        mapped = APONTAMENTOS.map_row(self._row())
        assert mapped["id_externo"] == "AMSapontamento|55012|7|2024-03-01T10:00:00.000Z"
        assert mapped["origem"] == "sql_server"
        assert mapped["data_ult_modificacao_geral"] == datetime(2024, 3, 2, 8, 15, 0)
        assert "autor_nome" not in mapped

    def test_watermark_scoped_to_sql_server_rows(self):
        assert APONTAMENTOS.watermark_scope == {"origem": "sql_server"}
        assert APONTAMENTOS.key_columns == ("id_externo",)


class TestRegistry:
    """Test entity registry"""

    def test_registered_entities(self):
        assert set(ENTITIES) == {"tickets", "apontamentos"}
        assert get_entity("tickets") is TICKETS

    def test_unknown_entity_lists_known_names(self):
        with pytest.raises(KeyError, match="apontamentos, tickets"):
            get_entity("invoices")

    def test_mapping_rejects_unmapped_key_field(self):
        with pytest.raises(ValueError, match="unmapped fields"):
            EntityMapping(
                name="broken",
                source_table="src",
                destination_table="dst",
                fields=(FieldMapping("a"),),
                modified_field="a",
                key_fields=("missing", None),
                epoch_default=datetime(2024, 1, 1),
            )

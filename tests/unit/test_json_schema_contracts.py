"""
Tests for JSON Schema Contract Validators

Комплексное тестирование JSON Schema валидаторов:
- Валидность самих схем
- Валидация правильных данных
- Детекция нарушений required полей
- Детекция нарушений типов и constraints (min/max/const)
- Интеграция с Pydantic моделями
"""

import json
from pathlib import Path

import pytest
from jsonschema import ValidationError

from src.core.contracts import (
    LedgerEventValidator,
    LedgerSnapshotValidator,
    SchemaLoader,
    validate_ledger_event,
    validate_ledger_snapshot,
)
from src.core.domain import (
    NULL_HOLDER,
    ApprovalEvent,
    IssuanceEvent,
    LedgerSnapshot,
    RedemptionEvent,
    TransferEvent,
)
from src.core.math.share_math import UINT256_MAX


# =============================================================================
# FIXTURES - VALID DATA SAMPLES
# =============================================================================


@pytest.fixture
def valid_snapshot():
    """Валидный ledger_snapshot для тестирования."""
    return {
        "schema_version": "1",
        "pool_value": 60,
        "total_shares": 50,
        "share_balances": {"alice": 10, "bob": 40},
        "allowances": [{"owner": "bob", "spender": "spender", "amount": 5}],
        "last_event_seq": 3,
    }


@pytest.fixture
def valid_transfer_event():
    """Валидное transfer событие."""
    return {
        "seq": 3,
        "kind": "TRANSFER",
        "sender": "alice",
        "receiver": "bob",
        "amount": 12,
        "shares": 10,
    }


# =============================================================================
# SCHEMA LOADER
# =============================================================================


class TestSchemaLoader:
    """Тесты загрузчика схем"""

    def test_schemas_are_valid(self) -> None:
        loader = SchemaLoader()
        for name in ("ledger_snapshot", "ledger_event"):
            schema = loader.load_schema(name)
            assert schema["title"] == name

    def test_schema_cache(self) -> None:
        loader = SchemaLoader()
        assert loader.load_schema("ledger_event") is loader.load_schema("ledger_event")

    def test_missing_schema(self) -> None:
        with pytest.raises(FileNotFoundError):
            SchemaLoader().load_schema("does_not_exist")

    def test_missing_directory(self, tmp_path: Path) -> None:
        with pytest.raises(RuntimeError, match="Schema directory not found"):
            SchemaLoader(tmp_path / "nowhere")

    def test_invalid_schema_file(self, tmp_path: Path) -> None:
        (tmp_path / "broken.json").write_text(json.dumps({"type": 42}), encoding="utf-8")
        with pytest.raises(ValueError, match="Invalid JSON Schema"):
            SchemaLoader(tmp_path).load_schema("broken")


# =============================================================================
# LEDGER SNAPSHOT
# =============================================================================


class TestLedgerSnapshotContract:
    """Тесты ledger_snapshot контракта"""

    def test_valid(self, valid_snapshot) -> None:
        validate_ledger_snapshot(valid_snapshot)
        assert LedgerSnapshotValidator().is_valid(valid_snapshot)

    def test_missing_required(self, valid_snapshot) -> None:
        del valid_snapshot["total_shares"]
        with pytest.raises(ValidationError, match="total_shares"):
            validate_ledger_snapshot(valid_snapshot)

    def test_negative_balance(self, valid_snapshot) -> None:
        valid_snapshot["share_balances"]["alice"] = -1
        assert not LedgerSnapshotValidator().is_valid(valid_snapshot)

    def test_above_uint256(self, valid_snapshot) -> None:
        valid_snapshot["pool_value"] = UINT256_MAX + 1
        with pytest.raises(ValidationError):
            validate_ledger_snapshot(valid_snapshot)

    def test_uint256_max_accepted(self, valid_snapshot) -> None:
        valid_snapshot["pool_value"] = UINT256_MAX
        validate_ledger_snapshot(valid_snapshot)

    def test_wrong_schema_version(self, valid_snapshot) -> None:
        valid_snapshot["schema_version"] = "2"
        with pytest.raises(ValidationError):
            validate_ledger_snapshot(valid_snapshot)

    def test_unknown_field(self, valid_snapshot) -> None:
        valid_snapshot["balances"] = {}
        with pytest.raises(ValidationError):
            validate_ledger_snapshot(valid_snapshot)

    def test_pydantic_dump_is_valid(self, valid_snapshot) -> None:
        model = LedgerSnapshot.model_validate(valid_snapshot)
        validate_ledger_snapshot(model.model_dump(mode="json"))


# =============================================================================
# LEDGER EVENT
# =============================================================================


class TestLedgerEventContract:
    """Тесты ledger_event контракта"""

    def test_valid_transfer(self, valid_transfer_event) -> None:
        validate_ledger_event(valid_transfer_event)

    def test_unknown_kind(self, valid_transfer_event) -> None:
        valid_transfer_event["kind"] = "MINT"
        with pytest.raises(ValidationError):
            validate_ledger_event(valid_transfer_event)

    def test_string_amount_rejected(self, valid_transfer_event) -> None:
        valid_transfer_event["amount"] = "12"
        assert not LedgerEventValidator().is_valid(valid_transfer_event)

    def test_issuance_from_non_null_rejected(self) -> None:
        data = {
            "seq": 1,
            "kind": "ISSUANCE",
            "sender": "alice",
            "receiver": "bob",
            "deposit": 10,
            "shares": 10,
        }
        with pytest.raises(ValidationError):
            validate_ledger_event(data)

    def test_redemption_zero_amount_rejected(self) -> None:
        data = {
            "seq": 1,
            "kind": "REDEMPTION",
            "sender": "alice",
            "receiver": NULL_HOLDER,
            "amount": 0,
            "shares": 1,
        }
        errors = list(LedgerEventValidator().iter_errors(data))
        assert errors

    @pytest.mark.parametrize(
        "event",
        [
            IssuanceEvent(seq=1, receiver="alice", deposit=10, shares=10),
            RedemptionEvent(seq=2, sender="alice", amount=12, shares=10),
            TransferEvent(seq=3, sender="alice", receiver="bob", amount=0, shares=0),
            ApprovalEvent(seq=4, owner="alice", spender="bob", amount=UINT256_MAX),
        ],
    )
    def test_pydantic_events_match_contract(self, event) -> None:
        validate_ledger_event(event.model_dump(mode="json"))

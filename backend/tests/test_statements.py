"""
Unit tests for statement commit planning and the liability roll-up.
"""

import pytest
from datetime import date
from decimal import Decimal

from royalty_engine.errors import InputValidationError
from royalty_engine.models.contract import (
    ContractFormat,
    ContractStatus,
    RoyaltyContract,
    RoyaltyTier,
)
from royalty_engine.models.ownership import OwnershipContext, OwnershipRow
from royalty_engine.models.royalty import CalculationMode
from royalty_engine.models.sales import SaleRecord
from royalty_engine.models.statement import StatementCommit
from royalty_engine.services.royalty_calc import calculate
from royalty_engine.services.statements import (
    apply_commit,
    plan_commit,
    summarize_liability,
)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _make_contract(**overrides) -> RoyaltyContract:
    fields = {
        "id": "contract-123",
        "title_id": "title-1",
        "author_id": "author-1",
        "advance_amount": Decimal("10000"),
        "advance_paid": Decimal("10000"),
        "advance_recouped": Decimal("5000"),
        "tiers": [RoyaltyTier(format=ContractFormat.PHYSICAL, min_quantity=0, rate=Decimal("0.10"))],
    }
    fields.update(overrides)
    return RoyaltyContract(**fields)


def _make_sales(revenue_units: int, unit_price: str = "60.00"):
    return [
        SaleRecord(
            format=ContractFormat.PHYSICAL,
            quantity=revenue_units,
            unit_price=Decimal(unit_price),
            transaction_date=date(2026, 2, 1),
        )
    ]


def _make_co_authors(caller: str) -> OwnershipContext:
    return OwnershipContext(
        author_id=caller,
        rows=[
            OwnershipRow(author_id="author-1", ownership_percentage=Decimal("50"), is_primary=True),
            OwnershipRow(author_id="author-2", ownership_percentage=Decimal("50")),
        ],
    )


class TestPlanCommit:
    """Test what a committed calculation asks the ledger to change."""

    def test_commit_mode(self):
        outcome = calculate(_make_contract(), _make_sales(1000), [], mode=CalculationMode.COMMIT)
        commit = plan_commit(outcome)

        assert commit is not None
        assert commit.contract_id == "contract-123"
        assert commit.author_id == "author-1"
        assert commit.previous_advance_recouped == Decimal("5000.00")
        assert commit.recoupment_delta == Decimal("5000.00")
        assert commit.new_advance_recouped == Decimal("10000.00")
        assert commit.net_payable == Decimal("1000.00")

    def test_dry_run_has_no_commit(self):
        outcome = calculate(_make_contract(), _make_sales(1000), [], mode=CalculationMode.DRY_RUN)
        assert plan_commit(outcome) is None

    def test_failed_outcome_has_no_commit(self):
        outcome = calculate(
            _make_contract(status=ContractStatus.TERMINATED),
            _make_sales(10),
            [],
            mode=CalculationMode.COMMIT,
        )
        assert plan_commit(outcome) is None


class TestApplyCommit:
    """Test producing the updated contract snapshot."""

    def test_updates_recouped_total(self):
        contract = _make_contract()
        commit = plan_commit(
            calculate(contract, _make_sales(1000), [], mode=CalculationMode.COMMIT)
        )
        updated = apply_commit(contract, commit)

        assert updated.advance_recouped == Decimal("10000.00")
        assert contract.advance_recouped == Decimal("5000")

    def test_next_period_pays_in_full(self):
        contract = _make_contract()
        commit = plan_commit(
            calculate(contract, _make_sales(1000), [], mode=CalculationMode.COMMIT)
        )
        updated = apply_commit(contract, commit)

        next_period = calculate(updated, _make_sales(100), [])
        assert next_period.calculation.advance.this_period_recoupment == Decimal("0.00")
        assert next_period.calculation.net_payable == Decimal("600.00")

    def test_wrong_contract(self):
        commit = plan_commit(
            calculate(_make_contract(), _make_sales(10), [], mode=CalculationMode.COMMIT)
        )
        with pytest.raises(InputValidationError):
            apply_commit(_make_contract(id="contract-999"), commit)

    def test_stale_commit(self):
        contract = _make_contract()
        commit = plan_commit(
            calculate(contract, _make_sales(10), [], mode=CalculationMode.COMMIT)
        )
        moved_on = contract.model_copy(update={"advance_recouped": Decimal("6000")})

        with pytest.raises(InputValidationError, match="recalculate"):
            apply_commit(moved_on, commit)

    def test_cannot_recoup_past_advance(self):
        commit = StatementCommit(
            contract_id="contract-123",
            previous_advance_recouped=Decimal("5000.00"),
            recoupment_delta=Decimal("6000.00"),
            new_advance_recouped=Decimal("11000.00"),
            net_payable=Decimal("0.00"),
        )
        with pytest.raises(InputValidationError, match="exceed"):
            apply_commit(_make_contract(), commit)


class TestSummarizeLiability:
    """Test totals across many calculations."""

    def test_totals_and_failures(self):
        outcomes = [
            calculate(_make_contract(id="c-1"), _make_sales(1000), []),
            calculate(_make_contract(id="c-2", advance_recouped=Decimal("10000")), _make_sales(100), []),
            calculate(_make_contract(id="c-3", status=ContractStatus.SUSPENDED), _make_sales(100), []),
        ]
        summary = summarize_liability(outcomes)

        assert summary.calculation_count == 2
        assert summary.total_gross_royalty == Decimal("6600.00")
        assert summary.total_recouped_this_period == Decimal("5000.00")
        assert summary.total_net_payable == Decimal("1600.00")
        assert summary.total_advance_remaining == Decimal("0.00")
        assert [f.contract_id for f in summary.failures] == ["c-3"]

    def test_empty(self):
        summary = summarize_liability([])
        assert summary.calculation_count == 0
        assert summary.total_net_payable == Decimal("0.00")
        assert summary.failures == []

    def test_co_authors_share_contract_figures(self):
        """Two 50/50 co-authors on one contract: gross, recoupment and remaining advance count once."""
        contract = _make_contract(advance_amount=Decimal("1000"), advance_recouped=Decimal("0"))
        outcomes = [
            calculate(contract, _make_sales(100, "20.00"), [], _make_co_authors("author-1")),
            calculate(contract, _make_sales(100, "20.00"), [], _make_co_authors("author-2")),
        ]
        summary = summarize_liability(outcomes)

        assert summary.calculation_count == 2
        assert summary.total_gross_royalty == Decimal("200.00")
        assert summary.total_recouped_this_period == Decimal("200.00")
        assert summary.total_advance_remaining == Decimal("800.00")
        assert summary.total_net_payable == Decimal("0.00")

    def test_co_author_net_payable_is_summed(self):
        contract = _make_contract(advance_amount=Decimal("150"), advance_recouped=Decimal("0"))
        outcomes = [
            calculate(contract, _make_sales(100, "20.00"), [], _make_co_authors("author-1")),
            calculate(contract, _make_sales(100, "20.00"), [], _make_co_authors("author-2")),
        ]
        summary = summarize_liability(outcomes)

        assert [o.calculation.net_payable for o in outcomes] == [Decimal("25.00"), Decimal("25.00")]
        assert summary.total_gross_royalty == Decimal("200.00")
        assert summary.total_recouped_this_period == Decimal("150.00")
        assert summary.total_net_payable == Decimal("50.00")

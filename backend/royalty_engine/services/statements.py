"""
Statement commit planning and liability roll-up.

The calculation never touches the advance ledger. When a statement is
actually issued, plan_commit() says what has to change and apply_commit()
produces the updated contract snapshot; the persistence layer writes it.
Dry runs never produce a commit plan.
"""

import logging
from typing import Iterable, Optional

from royalty_engine.errors import InputValidationError
from royalty_engine.models.contract import RoyaltyContract
from royalty_engine.models.royalty import CalculationMode, CalculationOutcome
from royalty_engine.models.statement import LiabilitySummary, StatementCommit
from royalty_engine.services.money import ZERO, quantize_currency

logger = logging.getLogger(__name__)


def plan_commit(outcome: CalculationOutcome) -> Optional[StatementCommit]:
    """
    Describe the ledger update a committed calculation implies.

    Returns None for dry runs and failed calculations.
    """
    if not outcome.success or outcome.calculation is None:
        return None

    calculation = outcome.calculation
    if calculation.mode != CalculationMode.COMMIT:
        return None

    advance = calculation.advance
    commit = StatementCommit(
        contract_id=calculation.contract_id,
        author_id=calculation.author_id,
        previous_advance_recouped=advance.previously_recouped,
        recoupment_delta=advance.this_period_recoupment,
        new_advance_recouped=advance.previously_recouped + advance.this_period_recoupment,
        net_payable=calculation.net_payable,
    )
    logger.info(
        f"Planned statement commit for contract {commit.contract_id}: "
        f"recouped {commit.previous_advance_recouped} -> {commit.new_advance_recouped}"
    )
    return commit


def apply_commit(contract: RoyaltyContract, commit: StatementCommit) -> RoyaltyContract:
    """
    Return a copy of the contract with the committed recoupment applied.

    Raises:
        InputValidationError: the commit belongs to another contract, was
            planned against a stale recouped total, or would recoup more
            than the advance.
    """
    if commit.contract_id != contract.id:
        raise InputValidationError(
            f"Commit for contract {commit.contract_id} cannot be applied to {contract.id}"
        )
    if quantize_currency(contract.advance_recouped) != commit.previous_advance_recouped:
        raise InputValidationError(
            f"Contract {contract.id} recouped total changed since the calculation "
            f"({commit.previous_advance_recouped} -> {contract.advance_recouped}); recalculate"
        )
    if commit.new_advance_recouped > contract.advance_amount:
        raise InputValidationError(
            f"Recouped total {commit.new_advance_recouped} would exceed advance {contract.advance_amount}"
        )
    return contract.model_copy(update={"advance_recouped": commit.new_advance_recouped})


def summarize_liability(outcomes: Iterable[CalculationOutcome]) -> LiabilitySummary:
    """
    Add up what is owed across calculations; failed ones are listed, not counted.

    Co-authors of one title each get their own outcome, but gross royalty,
    recoupment and remaining advance belong to the contract, so those are
    counted once per contract_id. Net payable is each author's share and is
    summed for every outcome.
    """
    summary = LiabilitySummary()
    gross = recouped = net = remaining = ZERO
    seen_contracts = set()

    for outcome in outcomes:
        if not outcome.success or outcome.calculation is None:
            summary.failures.append(outcome)
            continue
        calculation = outcome.calculation
        summary.calculation_count += 1
        net += calculation.net_payable

        if calculation.contract_id in seen_contracts:
            continue
        seen_contracts.add(calculation.contract_id)
        gross += calculation.gross_royalty
        recouped += calculation.advance.this_period_recoupment
        remaining += calculation.advance.remaining_advance

    summary.total_gross_royalty = quantize_currency(gross)
    summary.total_recouped_this_period = quantize_currency(recouped)
    summary.total_net_payable = quantize_currency(net)
    summary.total_advance_remaining = quantize_currency(remaining)
    return summary

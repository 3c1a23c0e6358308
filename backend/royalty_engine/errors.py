"""
Typed errors raised by the royalty engine.

Callers never see these escape calculate(); they are converted into a failed
CalculationOutcome so batch jobs can carry on with the next contract.
"""


class RoyaltyEngineError(Exception):
    """Base class for every error the engine raises on purpose."""
    error_type = "engine_error"


class InputValidationError(RoyaltyEngineError, ValueError):
    """Malformed input that should have been rejected before reaching the engine."""
    error_type = "input_validation"


class ParseError(InputValidationError):
    """A value could not be parsed as an exact decimal."""


class ContractConfigurationError(RoyaltyEngineError, ValueError):
    """
    The contract or title setup breaks an invariant (tier gaps/overlaps,
    ownership not summing to 100%). Always fatal to the calculation.
    """
    error_type = "contract_configuration"


class InactiveContractError(RoyaltyEngineError):
    """The contract is suspended or terminated."""
    error_type = "inactive_contract"

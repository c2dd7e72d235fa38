"""Services for profit distribution and the payment workflow."""

from .exceptions import (
    DistributionError,
    InvalidTotalAmountError,
    InvalidCrewCountError,
    CrewCountMismatchError,
    DebtExceedsShareError,
    AlreadyCompletedError,
    CycleNotFoundError,
    CycleClosedError,
    PaymentsOutstandingError,
    InvalidBoxStateError,
    MemberNotInCycleError,
)
from .distribution_engine import (
    RosterEntry,
    MemberAllocation,
    DistributionResult,
    compute_distribution,
    recalculate_distribution,
    validate_debt_deduction,
)
from .payment_workflow import (
    build_roster,
    preview_distribution,
    open_cycle,
    deduct_member_debt,
    mark_pending,
    confirm_payments,
    confirm_final_payment,
    get_cycle_by_id,
    list_cycles,
)

__all__ = [
    # Exceptions
    'DistributionError',
    'InvalidTotalAmountError',
    'InvalidCrewCountError',
    'CrewCountMismatchError',
    'DebtExceedsShareError',
    'AlreadyCompletedError',
    'CycleNotFoundError',
    'CycleClosedError',
    'PaymentsOutstandingError',
    'InvalidBoxStateError',
    'MemberNotInCycleError',
    # Engine
    'RosterEntry',
    'MemberAllocation',
    'DistributionResult',
    'compute_distribution',
    'recalculate_distribution',
    'validate_debt_deduction',
    # Workflow
    'build_roster',
    'preview_distribution',
    'open_cycle',
    'deduct_member_debt',
    'mark_pending',
    'confirm_payments',
    'confirm_final_payment',
    'get_cycle_by_id',
    'list_cycles',
]

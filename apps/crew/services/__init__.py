"""Services for crew business logic."""

from .exceptions import (
    CrewServiceError,
    CrewMemberNotFoundError,
    DebtEntryNotFoundError,
    InvalidDebtAmountError,
    InvalidCrewRoleError,
)
from .crew_management import (
    create_crew_member,
    get_crew_member_by_id,
    list_crew_members,
    update_crew_member,
    delete_crew_member,
    get_crew_summary,
)
from .debt_ledger import (
    get_debt_total,
    get_debt_history,
    append_debt_entry,
    set_debt,
    update_debt_entry,
    delete_debt_entry,
)

__all__ = [
    # Exceptions
    'CrewServiceError',
    'CrewMemberNotFoundError',
    'DebtEntryNotFoundError',
    'InvalidDebtAmountError',
    'InvalidCrewRoleError',
    # Crew management
    'create_crew_member',
    'get_crew_member_by_id',
    'list_crew_members',
    'update_crew_member',
    'delete_crew_member',
    'get_crew_summary',
    # Debt ledger
    'get_debt_total',
    'get_debt_history',
    'append_debt_entry',
    'set_debt',
    'update_debt_entry',
    'delete_debt_entry',
]

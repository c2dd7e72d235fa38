"""
Profit distribution engine.

Pure functions over ``Decimal`` amounts: no database access, no settings,
same input always gives the same result.

The split:

1. The total is halved into the owner's half and the crew pool. An odd
   cent goes to the crew pool (half-up).
2. Regular crew hold 1 share unit, captains hold 1.5.
3. ``individual_share = crew_pool / share_units``; a captain gets 1.5 of it.
4. The captain premium (the extra half unit) is funded by the owner:
   ``owner_share = owner_half - captains * individual_share * 0.5``.

The crew pool is split between members in whole cents with the leftover
cents handed out one at a time, so the base shares add up to the pool
exactly and two members of the same role differ by at most one cent.
``individual_share`` and ``captain_share`` are the nominal per-role values
rounded half-up. With no captains the owner keeps exactly the owner's half,
and in every case::

    owner_share + total_crew_share + total_captain_extra == total_amount

Each member's debt is netted against their base share. Payouts never go
negative; the part of a deduction above the share is reported as
``forgiven_amount``.

Rejected alternative: ``individual_share = total / 2 / crew_count`` with the
captain's extra half added on top. It does not keep the crew pool intact
once captains are present.
"""

from dataclasses import dataclass, field
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from typing import Any, Dict, List, Mapping, Optional, Sequence, Tuple

from .exceptions import (
    InvalidTotalAmountError,
    InvalidCrewCountError,
    CrewCountMismatchError,
    DebtExceedsShareError,
)

CENT = Decimal('0.01')
ZERO = Decimal('0.00')
HALF = Decimal('0.5')

CREW_UNITS = Decimal('1')
CAPTAIN_UNITS = Decimal('1.5')
CAPTAIN_PREMIUM_UNITS = CAPTAIN_UNITS - CREW_UNITS

# Ad-hoc deductions must be strictly greater than this
DEFAULT_MIN_DEDUCTION = Decimal('1')

ROLE_CAPTAIN = 'captain'
ROLE_CREW = 'crew'


def to_cents(value: Decimal) -> Decimal:
    """Round half-up to two decimal places."""
    return value.quantize(CENT, rounding=ROUND_HALF_UP)


@dataclass(frozen=True)
class RosterEntry:
    """A member taking part in a distribution."""
    member_id: Any
    role: str
    current_debt: Decimal = ZERO
    name: str = ''

    @property
    def is_captain(self) -> bool:
        return self.role == ROLE_CAPTAIN


@dataclass(frozen=True)
class MemberAllocation:
    """What one member receives."""
    member_id: Any
    role: str
    base_share: Decimal
    debt_deduction: Decimal
    net_payout: Decimal
    forgiven_amount: Decimal
    name: str = ''

    def to_dict(self) -> Dict[str, Any]:
        return {
            'member_id': self.member_id,
            'name': self.name,
            'role': self.role,
            'base_share': self.base_share,
            'debt_deduction': self.debt_deduction,
            'net_payout': self.net_payout,
            'forgiven_amount': self.forgiven_amount,
        }


@dataclass(frozen=True)
class DistributionResult:
    """Outcome of splitting one box total between owner and crew."""
    total_amount: Decimal
    owner_share: Decimal
    total_crew_share: Decimal
    individual_share: Decimal
    captain_share: Decimal
    captain_extra_share: Decimal
    total_captain_extra: Decimal
    crew_count: int
    captain_count: int
    share_units: Decimal
    allocations: Tuple[MemberAllocation, ...] = field(default_factory=tuple)

    @property
    def total_distributed(self) -> Decimal:
        """Owner share plus crew shares: what leaves the box on completion."""
        return self.owner_share + self.total_crew_share

    @property
    def total_net_payout(self) -> Decimal:
        """Cash actually handed to the crew after debt netting."""
        return sum((a.net_payout for a in self.allocations), ZERO)

    @property
    def total_debt_deduction(self) -> Decimal:
        return sum((a.debt_deduction for a in self.allocations), ZERO)

    def allocation_for(self, member_id: Any) -> Optional[MemberAllocation]:
        for allocation in self.allocations:
            if allocation.member_id == member_id:
                return allocation
        return None

    def to_dict(self) -> Dict[str, Any]:
        return {
            'total_amount': self.total_amount,
            'owner_share': self.owner_share,
            'total_crew_share': self.total_crew_share,
            'individual_share': self.individual_share,
            'captain_share': self.captain_share,
            'captain_extra_share': self.captain_extra_share,
            'total_captain_extra': self.total_captain_extra,
            'total_distributed': self.total_distributed,
            'total_net_payout': self.total_net_payout,
            'total_debt_deduction': self.total_debt_deduction,
            'crew_count': self.crew_count,
            'captain_count': self.captain_count,
            'share_units': self.share_units,
            'allocations': [a.to_dict() for a in self.allocations],
        }


def _coerce_amount(value: Any) -> Decimal:
    if isinstance(value, bool):
        raise InvalidTotalAmountError(f"Invalid total amount: {value!r}")
    try:
        amount = Decimal(str(value))
    except (InvalidOperation, ValueError, TypeError):
        raise InvalidTotalAmountError(f"Invalid total amount: {value!r}")
    if not amount.is_finite() or amount < 0:
        raise InvalidTotalAmountError(f"Total amount must be a non-negative number, got {value!r}")
    return amount


def _coerce_deduction(value: Any) -> Decimal:
    if isinstance(value, bool):
        raise DebtExceedsShareError(f"Invalid deduction: {value!r}")
    try:
        amount = Decimal(str(value))
    except (InvalidOperation, ValueError, TypeError):
        raise DebtExceedsShareError(f"Invalid deduction: {value!r}")
    if not amount.is_finite():
        raise DebtExceedsShareError(f"Invalid deduction: {value!r}")
    return amount


def validate_debt_deduction(
    base_share: Decimal,
    current_debt: Decimal,
    amount: Any,
    *,
    minimum: Decimal = DEFAULT_MIN_DEDUCTION
) -> Decimal:
    """
    Check an ad-hoc deduction against the deduction policy.

    Args:
        base_share: Member's share before deductions
        current_debt: Member's outstanding debt
        amount: Requested deduction
        minimum: Deduction must be strictly greater than this

    Returns:
        The deduction rounded to cents

    Raises:
        DebtExceedsShareError: If the amount is not above the minimum, the
            member's debt already reaches their share, or the amount is
            larger than the share
    """
    deduction = _coerce_deduction(amount)

    if deduction <= minimum:
        raise DebtExceedsShareError(
            f"Additional deduction must be greater than {minimum}"
        )
    if Decimal(current_debt) >= Decimal(base_share):
        raise DebtExceedsShareError(
            f"Current debt {current_debt} must be less than the base share {base_share}"
        )
    if deduction > Decimal(base_share):
        raise DebtExceedsShareError(
            f"Deduction {deduction} exceeds the base share {base_share}"
        )

    return to_cents(deduction)


def _net(member: RosterEntry, base_share: Decimal, deduction: Decimal) -> MemberAllocation:
    return MemberAllocation(
        member_id=member.member_id,
        role=member.role,
        base_share=base_share,
        debt_deduction=deduction,
        net_payout=max(ZERO, base_share - deduction),
        forgiven_amount=max(ZERO, deduction - base_share),
        name=member.name,
    )


def _split_pool(crew_pool: Decimal, slot_units: Sequence[Decimal]) -> List[Decimal]:
    """
    Split the crew pool over share slots in whole cents.

    Works in cents with integer arithmetic: each slot gets the floor of its
    unit-weighted part, then the cents left over are handed out one at a
    time to the slots with the largest remainders (earlier slots first on
    ties). The parts always sum to ``crew_pool``.

    Example:
        500.00 over seven crew slots gives six slots of 71.43 and one of 71.42.
    """
    if not slot_units:
        return []

    pool_cents = int(crew_pool * 100)
    total_units = sum(slot_units, Decimal('0'))
    exact = [pool_cents * units / total_units for units in slot_units]
    cents = [int(value) for value in exact]

    remainder = pool_cents - sum(cents)
    by_remainder = sorted(range(len(exact)), key=lambda i: (cents[i] - exact[i], i))
    for i in by_remainder[:remainder]:
        cents[i] += 1

    return [to_cents(Decimal(value) / 100) for value in cents]


def _build_result(
    total: Decimal,
    roster: Sequence[RosterEntry],
    head_count: int,
    captain_count: int,
    deductions: Optional[Mapping[Any, Any]],
    min_deduction: Decimal
) -> DistributionResult:
    total = to_cents(total)
    crew_pool = to_cents(total * HALF)
    owner_half = total - crew_pool

    share_units = (head_count - captain_count) * CREW_UNITS + captain_count * CAPTAIN_UNITS
    individual_exact = crew_pool / share_units

    # Nominal per-role shares; members get these give or take one cent
    individual_share = to_cents(individual_exact)
    captain_share = to_cents(individual_exact * CAPTAIN_UNITS)
    captain_extra_share = to_cents(individual_exact * CAPTAIN_PREMIUM_UNITS) if captain_count else ZERO
    total_captain_extra = captain_extra_share * captain_count

    slots = _split_pool(
        crew_pool,
        [CAPTAIN_UNITS] * captain_count + [CREW_UNITS] * (head_count - captain_count),
    )
    captain_slots = iter(slots[:captain_count])
    crew_slots = iter(slots[captain_count:])

    deductions = deductions or {}
    allocations: List[MemberAllocation] = []
    for member in roster:
        if member.is_captain:
            base_share = next(captain_slots, captain_share)
        else:
            base_share = next(crew_slots, individual_share)

        if member.member_id in deductions:
            deduction = validate_debt_deduction(
                base_share,
                member.current_debt,
                deductions[member.member_id],
                minimum=min_deduction,
            )
        else:
            deduction = to_cents(max(ZERO, Decimal(member.current_debt)))
        allocations.append(_net(member, base_share, deduction))

    return DistributionResult(
        total_amount=total,
        owner_share=owner_half - total_captain_extra,
        total_crew_share=crew_pool,
        individual_share=individual_share,
        captain_share=captain_share,
        captain_extra_share=captain_extra_share,
        total_captain_extra=total_captain_extra,
        crew_count=head_count,
        captain_count=captain_count,
        share_units=share_units,
        allocations=tuple(allocations),
    )


def compute_distribution(
    total_amount: Any,
    roster: Sequence[RosterEntry],
    *,
    expected_crew_count: Optional[int] = None,
    deductions: Optional[Mapping[Any, Any]] = None,
    min_deduction: Decimal = DEFAULT_MIN_DEDUCTION
) -> DistributionResult:
    """
    Split a box total between the owner and the given roster.

    Args:
        total_amount: Amount to distribute (non-negative)
        roster: Members sharing the crew pool
        expected_crew_count: The box's crew count; must equal len(roster)
        deductions: Optional ad-hoc deductions keyed by member_id, replacing
            the default deduction of the member's full current debt
        min_deduction: Threshold ad-hoc deductions must exceed

    Returns:
        DistributionResult

    Raises:
        InvalidTotalAmountError: If total_amount is negative or not a number
        InvalidCrewCountError: If roster is empty
        CrewCountMismatchError: If len(roster) != expected_crew_count
        DebtExceedsShareError: If an ad-hoc deduction breaks the policy
    """
    total = _coerce_amount(total_amount)

    if not roster:
        raise InvalidCrewCountError("Cannot distribute to an empty roster")

    if expected_crew_count is not None and len(roster) != expected_crew_count:
        raise CrewCountMismatchError(actual=len(roster), expected=expected_crew_count)

    captain_count = sum(1 for member in roster if member.is_captain)

    return _build_result(
        total, roster, len(roster), captain_count, deductions, min_deduction
    )


def recalculate_distribution(
    total_amount: Any,
    roster: Sequence[RosterEntry],
    crew_count: int,
    *,
    deductions: Optional[Mapping[Any, Any]] = None,
    min_deduction: Decimal = DEFAULT_MIN_DEDUCTION
) -> DistributionResult:
    """
    What-if split with an operator-supplied head count.

    The roster is not changed: captains are counted from it, the shares
    are sized for ``crew_count`` heads and allocations are returned for the
    roster members only.

    Raises:
        InvalidTotalAmountError: If total_amount is negative or not a number
        InvalidCrewCountError: If crew_count is not a positive integer or is
            smaller than the number of captains
        DebtExceedsShareError: If an ad-hoc deduction breaks the policy
    """
    total = _coerce_amount(total_amount)

    if isinstance(crew_count, bool) or not isinstance(crew_count, int):
        raise InvalidCrewCountError(f"Crew count must be an integer, got {crew_count!r}")
    if crew_count < 1:
        raise InvalidCrewCountError("Crew count must be at least 1")

    captain_count = sum(1 for member in roster if member.is_captain)
    if crew_count < captain_count:
        raise InvalidCrewCountError(
            f"Crew count {crew_count} is smaller than the number of captains ({captain_count})"
        )

    return _build_result(
        total, roster, crew_count, captain_count, deductions, min_deduction
    )

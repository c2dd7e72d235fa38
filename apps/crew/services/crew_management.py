"""
Crew management service.

CRUD for crew members plus the roster summary shown on the dashboard.
"""

import logging
from datetime import date
from decimal import Decimal
from typing import Optional
from uuid import UUID

from django.db import transaction
from django.db.models import QuerySet

from apps.crew.models import CrewMember, CrewRole

from .exceptions import CrewMemberNotFoundError, InvalidCrewRoleError

logger = logging.getLogger(__name__)


def _validate_role(role: str) -> None:
    if role not in CrewRole.values:
        raise InvalidCrewRoleError(
            f"Invalid role '{role}'. Must be one of: {', '.join(CrewRole.values)}"
        )


@transaction.atomic
def create_crew_member(
    *,
    name: str,
    role: str = CrewRole.CREW,
    phone: str = '',
    email: str = '',
    join_date: Optional[date] = None,
    is_active: bool = True
) -> CrewMember:
    """
    Add a member to the vessel's crew.

    Args:
        name: Member's full name
        role: 'captain' or 'crew'
        phone: Optional phone number
        email: Optional email address
        join_date: Date the member joined (defaults to today)
        is_active: Whether the member takes part in distributions

    Returns:
        Created CrewMember instance

    Raises:
        InvalidCrewRoleError: If role is not recognised
    """
    _validate_role(role)

    fields = {
        'name': name,
        'role': role,
        'phone': phone,
        'email': email,
        'is_active': is_active,
    }
    if join_date is not None:
        fields['join_date'] = join_date

    member = CrewMember.objects.create(**fields)
    logger.info("Crew member %s created (%s)", member.id, member.role)
    return member


def get_crew_member_by_id(*, member_id: UUID) -> CrewMember:
    """
    Get a crew member by ID.

    Raises:
        CrewMemberNotFoundError: If member doesn't exist
    """
    try:
        return CrewMember.objects.get(id=member_id)
    except CrewMember.DoesNotExist:
        raise CrewMemberNotFoundError(f"Crew member with ID {member_id} not found")


def list_crew_members(
    *,
    active_only: bool = False,
    role: Optional[str] = None
) -> QuerySet[CrewMember]:
    """Return crew members ordered by name, optionally filtered."""
    queryset = CrewMember.objects.all()
    if active_only:
        queryset = queryset.filter(is_active=True)
    if role:
        _validate_role(role)
        queryset = queryset.filter(role=role)
    return queryset


@transaction.atomic
def update_crew_member(
    *,
    member_id: UUID,
    name: Optional[str] = None,
    role: Optional[str] = None,
    phone: Optional[str] = None,
    email: Optional[str] = None,
    join_date: Optional[date] = None,
    is_active: Optional[bool] = None
) -> CrewMember:
    """
    Update crew member details. Only provided fields are changed.

    Raises:
        CrewMemberNotFoundError: If member doesn't exist
        InvalidCrewRoleError: If role is not recognised
    """
    try:
        member = CrewMember.objects.select_for_update().get(id=member_id)
    except CrewMember.DoesNotExist:
        raise CrewMemberNotFoundError(f"Crew member with ID {member_id} not found")

    if role is not None:
        _validate_role(role)

    changes = {
        'name': name,
        'role': role,
        'phone': phone,
        'email': email,
        'join_date': join_date,
        'is_active': is_active,
    }
    update_fields = []
    for field, value in changes.items():
        if value is not None:
            setattr(member, field, value)
            update_fields.append(field)

    if update_fields:
        update_fields.append('updated_at')
        member.save(update_fields=update_fields)

    return member


@transaction.atomic
def delete_crew_member(*, member_id: UUID) -> None:
    """
    Permanently delete a crew member together with their debt ledger.

    Raises:
        CrewMemberNotFoundError: If member doesn't exist
    """
    try:
        member = CrewMember.objects.select_for_update().get(id=member_id)
    except CrewMember.DoesNotExist:
        raise CrewMemberNotFoundError(f"Crew member with ID {member_id} not found")

    member.delete()
    logger.info("Crew member %s deleted", member_id)


def get_crew_summary() -> dict:
    """
    Aggregate figures for the crew dashboard.

    Returns:
        Dict with member_count, active_count, captain_count, crew_count
        (active members per role) and total_debt (sum of floored debts)
    """
    members = list(CrewMember.objects.prefetch_related('debt_entries'))
    active = [m for m in members if m.is_active]

    total_debt = sum(
        (_current_debt_from_prefetch(m) for m in members),
        Decimal('0.00')
    )

    return {
        'member_count': len(members),
        'active_count': len(active),
        'captain_count': sum(1 for m in active if m.role == CrewRole.CAPTAIN),
        'crew_count': sum(1 for m in active if m.role == CrewRole.CREW),
        'total_debt': total_debt,
        'members_with_debt': sum(
            1 for m in members if _current_debt_from_prefetch(m) > 0
        ),
    }


def _current_debt_from_prefetch(member: CrewMember) -> Decimal:
    balance = sum(
        (entry.signed_amount for entry in member.debt_entries.all()),
        Decimal('0.00')
    )
    return max(Decimal('0.00'), balance)

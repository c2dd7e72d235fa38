from rest_framework import viewsets, status
from rest_framework.decorators import action, api_view, permission_classes
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response
from drf_spectacular.utils import extend_schema

from .models import CrewMember, DebtEntryType
from .serializers import (
    CrewMemberSerializer,
    CrewMemberCreateSerializer,
    DebtEntrySerializer,
    DebtAdjustmentSerializer,
    DebtEntryUpdateSerializer,
    CrewSummarySerializer,
)

from apps.crew.services import (
    create_crew_member,
    list_crew_members,
    update_crew_member,
    delete_crew_member,
    get_crew_summary,
    get_debt_history,
    append_debt_entry,
    set_debt,
    update_debt_entry,
    delete_debt_entry,
    # Exceptions
    DebtEntryNotFoundError,
    InvalidDebtAmountError,
    InvalidCrewRoleError,
)


class CrewMemberViewSet(viewsets.ModelViewSet):
    """
    ViewSet for crew members.

    All business logic is handled by services.
    Views are thin HTTP handlers only.

    list: Get all crew members (?active=true, ?role=captain|crew)
    create: Add a crew member
    retrieve: Get a member with current debt
    update: Update a member
    partial_update: Partially update a member
    destroy: Delete a member and their debt ledger
    """

    queryset = CrewMember.objects.all()
    serializer_class = CrewMemberSerializer
    permission_classes = [IsAuthenticated]

    def get_queryset(self):
        """Apply optional active/role filters from the query string."""
        active = self.request.query_params.get('active')
        role = self.request.query_params.get('role')
        try:
            return list_crew_members(
                active_only=active in ('1', 'true', 'True'),
                role=role or None,
            )
        except InvalidCrewRoleError:
            return CrewMember.objects.none()

    def get_serializer_class(self):
        """Use different serializers for different actions."""
        if self.action in ['create', 'update', 'partial_update']:
            return CrewMemberCreateSerializer
        return CrewMemberSerializer

    def create(self, request, *args, **kwargs):
        """Add a new crew member."""
        serializer = self.get_serializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        member = create_crew_member(**serializer.validated_data)

        return Response(
            CrewMemberSerializer(member).data,
            status=status.HTTP_201_CREATED
        )

    def update(self, request, *args, **kwargs):
        """Update a crew member (PUT or PATCH)."""
        partial = kwargs.pop('partial', False)
        serializer = self.get_serializer(data=request.data, partial=partial)
        serializer.is_valid(raise_exception=True)

        member = update_crew_member(
            member_id=self.get_object().id,
            **serializer.validated_data
        )

        return Response(CrewMemberSerializer(member).data)

    def destroy(self, request, *args, **kwargs):
        """Delete a crew member together with their debt history."""
        member = self.get_object()
        delete_crew_member(member_id=member.id)
        return Response(status=status.HTTP_204_NO_CONTENT)

    @extend_schema(
        methods=['GET'],
        responses={200: DebtEntrySerializer(many=True)},
        description="Debt ledger of a member, newest first.",
    )
    @extend_schema(
        methods=['POST'],
        request=DebtAdjustmentSerializer,
        responses={201: DebtEntrySerializer, 200: CrewMemberSerializer},
        description="Add to, subtract from, or set a member's debt.",
    )
    @action(detail=True, methods=['get', 'post'])
    def debts(self, request, pk=None):
        """List or adjust a member's debt ledger."""
        member = self.get_object()

        if request.method == 'GET':
            entries = get_debt_history(member_id=member.id)
            return Response(DebtEntrySerializer(entries, many=True).data)

        serializer = DebtAdjustmentSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        try:
            if data['action'] == DebtAdjustmentSerializer.ACTION_SET:
                entry = set_debt(
                    member_id=member.id,
                    amount=data['amount'],
                    description=data['description'],
                )
            else:
                entry = append_debt_entry(
                    member_id=member.id,
                    amount=data['amount'],
                    entry_type=(
                        DebtEntryType.ADD
                        if data['action'] == DebtAdjustmentSerializer.ACTION_ADD
                        else DebtEntryType.SUBTRACT
                    ),
                    description=data['description'],
                    entry_date=data.get('entry_date'),
                )
        except InvalidDebtAmountError as e:
            return Response({'error': str(e)}, status=status.HTTP_400_BAD_REQUEST)

        if entry is None:
            # Balance already matched the requested amount
            return Response(CrewMemberSerializer(member).data)

        return Response(DebtEntrySerializer(entry).data, status=status.HTTP_201_CREATED)

    @extend_schema(responses={200: CrewSummarySerializer})
    @action(detail=False, methods=['get'])
    def summary(self, request):
        """Roster counts and total outstanding debt."""
        return Response(CrewSummarySerializer(get_crew_summary()).data)


@extend_schema(
    methods=['PATCH'],
    request=DebtEntryUpdateSerializer,
    responses={200: DebtEntrySerializer},
    description="Edit a single debt ledger entry.",
    tags=['crew'],
)
@extend_schema(
    methods=['DELETE'],
    responses={204: None},
    description="Delete a debt ledger entry, reversing its effect.",
    tags=['crew'],
)
@api_view(['PATCH', 'DELETE'])
@permission_classes([IsAuthenticated])
def debt_entry_detail(request, entry_id):
    """Edit or delete one debt ledger entry."""
    try:
        if request.method == 'DELETE':
            delete_debt_entry(entry_id=entry_id)
            return Response(status=status.HTTP_204_NO_CONTENT)

        serializer = DebtEntryUpdateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        entry = update_debt_entry(entry_id=entry_id, **serializer.validated_data)
    except DebtEntryNotFoundError as e:
        return Response({'error': str(e)}, status=status.HTTP_404_NOT_FOUND)
    except InvalidDebtAmountError as e:
        return Response({'error': str(e)}, status=status.HTTP_400_BAD_REQUEST)

    return Response(DebtEntrySerializer(entry).data)


@extend_schema(
    responses={200: CrewMemberSerializer(many=True)},
    description="Active roster used for profit distribution.",
    tags=['crew'],
)
@api_view(['GET'])
@permission_classes([IsAuthenticated])
def roster(request):
    """Active crew members, captains first."""
    members = list_crew_members(active_only=True).order_by('role', 'name')
    return Response(CrewMemberSerializer(members, many=True).data)

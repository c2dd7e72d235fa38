from rest_framework import viewsets, status
from rest_framework.decorators import action, api_view, permission_classes
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response
from drf_spectacular.utils import extend_schema, OpenApiParameter

from apps.accounts.permissions import IsOwnerOperator

from .models import DistributionCycle
from .serializers import (
    DistributionResultSerializer,
    DistributionCycleSerializer,
    MemberPaymentSerializer,
    PreviewQuerySerializer,
    OpenCycleSerializer,
    DeductDebtSerializer,
    MemberSelectionSerializer,
    ConfirmFinalSerializer,
    CycleFilterSerializer,
)

from apps.boxes.services import BoxNotFoundError
from apps.distribution.services import (
    preview_distribution,
    open_cycle,
    deduct_member_debt,
    mark_pending,
    confirm_payments,
    confirm_final_payment,
    list_cycles,
    # Exceptions
    DistributionError,
    CrewCountMismatchError,
    CycleNotFoundError,
    MemberNotInCycleError,
)


def _error_response(error):
    """Convert a service error to an HTTP response."""
    if isinstance(error, (BoxNotFoundError, CycleNotFoundError, MemberNotInCycleError)):
        return Response({'error': str(error)}, status=status.HTTP_404_NOT_FOUND)

    body = {'error': str(error)}
    if isinstance(error, CrewCountMismatchError):
        body['actual_count'] = error.actual
        body['expected_count'] = error.expected
    return Response(body, status=status.HTTP_400_BAD_REQUEST)


@extend_schema(
    parameters=[
        OpenApiParameter('box', str, required=True, description='Financial box ID'),
        OpenApiParameter('crew_count', int, description='What-if head count'),
    ],
    responses={200: DistributionResultSerializer},
    description="Compute the owner/crew split of a box without saving anything.",
    tags=['distribution'],
)
@api_view(['GET'])
@permission_classes([IsAuthenticated])
def preview(request):
    """Preview the distribution of a box."""
    params = PreviewQuerySerializer(data=request.query_params)
    params.is_valid(raise_exception=True)

    try:
        result = preview_distribution(
            box_id=params.validated_data['box'],
            crew_count=params.validated_data.get('crew_count'),
        )
    except (BoxNotFoundError, DistributionError) as e:
        return _error_response(e)

    return Response(DistributionResultSerializer(result.to_dict()).data)


class DistributionCycleViewSet(viewsets.ReadOnlyModelViewSet):
    """
    ViewSet for distribution cycles.

    All business logic is handled by services.
    Views are thin HTTP handlers only.

    list: Get cycles (?box=, ?open=true)
    create: Open a cycle for a box
    retrieve: Get a cycle with its payments
    """

    queryset = DistributionCycle.objects.all()
    serializer_class = DistributionCycleSerializer
    permission_classes = [IsAuthenticated]

    def get_queryset(self):
        """Apply optional filters on list."""
        if self.action != 'list':
            return list_cycles()

        filters = CycleFilterSerializer(data=self.request.query_params)
        filters.is_valid(raise_exception=True)
        return list_cycles(
            box_id=filters.validated_data.get('box'),
            open_only=filters.validated_data['open'],
        )

    def _cycle_response(self, cycle_id):
        return Response(DistributionCycleSerializer(list_cycles().get(id=cycle_id)).data)

    @extend_schema(request=OpenCycleSerializer, responses={201: DistributionCycleSerializer})
    def create(self, request, *args, **kwargs):
        """Open a distribution cycle (returns the open one if it exists)."""
        serializer = OpenCycleSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        try:
            cycle = open_cycle(box_id=serializer.validated_data['box'], user=request.user)
        except (BoxNotFoundError, DistributionError) as e:
            return _error_response(e)

        return Response(
            DistributionCycleSerializer(list_cycles().get(id=cycle.id)).data,
            status=status.HTTP_201_CREATED
        )

    @extend_schema(request=DeductDebtSerializer, responses={200: MemberPaymentSerializer})
    @action(detail=True, methods=['post'])
    def deduct_debt(self, request, pk=None):
        """Deduct a member's debt from their share."""
        serializer = DeductDebtSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        try:
            payment = deduct_member_debt(
                cycle_id=self.get_object().id,
                member_id=serializer.validated_data['member'],
                amount=serializer.validated_data.get('amount'),
            )
        except DistributionError as e:
            return _error_response(e)

        return Response(MemberPaymentSerializer(payment).data)

    @extend_schema(request=MemberSelectionSerializer, responses={200: DistributionCycleSerializer})
    @action(detail=True, methods=['post'])
    def mark_pending(self, request, pk=None):
        """Select members for payment."""
        serializer = MemberSelectionSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        cycle = self.get_object()

        try:
            mark_pending(cycle_id=cycle.id, member_ids=serializer.validated_data.get('member_ids'))
        except DistributionError as e:
            return _error_response(e)

        return self._cycle_response(cycle.id)

    @extend_schema(request=MemberSelectionSerializer, responses={200: DistributionCycleSerializer})
    @action(detail=True, methods=['post'])
    def confirm_payments(self, request, pk=None):
        """Confirm members as paid (all members when member_ids is omitted)."""
        serializer = MemberSelectionSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        cycle = self.get_object()

        try:
            confirm_payments(cycle_id=cycle.id, member_ids=serializer.validated_data.get('member_ids'))
        except DistributionError as e:
            return _error_response(e)

        return self._cycle_response(cycle.id)

    @extend_schema(request=ConfirmFinalSerializer, responses={200: DistributionCycleSerializer})
    @action(detail=True, methods=['post'], permission_classes=[IsAuthenticated, IsOwnerOperator])
    def confirm_final(self, request, pk=None):
        """Close the cycle, decrement the box total and complete the box (owner only)."""
        serializer = ConfirmFinalSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        cycle = self.get_object()

        try:
            confirm_final_payment(
                cycle_id=cycle.id,
                total_amount=serializer.validated_data.get('total_amount'),
            )
        except DistributionError as e:
            return _error_response(e)

        return self._cycle_response(cycle.id)

from django.conf import settings
from rest_framework import viewsets, status
from rest_framework.decorators import action
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response
from rest_framework.pagination import PageNumberPagination
from drf_spectacular.utils import extend_schema, OpenApiParameter

from apps.accounts.permissions import IsOwnerOperator

from .models import FinancialBox, Invoice
from .serializers import (
    FinancialBoxSerializer,
    FinancialBoxCreateSerializer,
    BoxStatusSerializer,
    InvoiceSerializer,
    InvoiceCreateSerializer,
    InvoiceUpdateSerializer,
    InvoicePaidSerializer,
    InvoiceFilterSerializer,
    InvoiceStatsSerializer,
    OwnerBalanceSerializer,
)

from apps.boxes.services import (
    create_box,
    list_boxes,
    update_box,
    delete_box,
    set_box_status,
    get_owner_balance,
    create_invoice,
    update_invoice,
    delete_invoice,
    set_invoice_paid,
    list_invoices,
    get_invoice_stats,
    # Exceptions
    BoxNotFoundError,
    InvalidBoxStatusError,
    InvalidAmountError,
    BoxClosedError,
    DuplicateInvoiceNumberError,
)


class InvoicePagination(PageNumberPagination):
    """Custom pagination for invoices."""
    page_size = 50
    page_size_query_param = 'page_size'
    max_page_size = 200


def _invoice_filters(request):
    filters = InvoiceFilterSerializer(data=request.query_params)
    filters.is_valid(raise_exception=True)
    return filters.validated_data


class FinancialBoxViewSet(viewsets.ModelViewSet):
    """
    ViewSet for financial boxes.

    All business logic is handled by services.
    Views are thin HTTP handlers only.

    list: Get all boxes (?status=draft|completed|cancelled)
    create: Open a new box
    retrieve: Get a box with its running total
    update: Update name, description, crew count
    partial_update: Partially update a box
    destroy: Delete a box and its invoices
    """

    queryset = FinancialBox.objects.all()
    serializer_class = FinancialBoxSerializer
    permission_classes = [IsAuthenticated]

    def get_queryset(self):
        """Apply optional status filter from the query string."""
        try:
            return list_boxes(status=self.request.query_params.get('status') or None)
        except InvalidBoxStatusError:
            return FinancialBox.objects.none()

    def get_serializer_class(self):
        """Use different serializers for different actions."""
        if self.action in ['create', 'update', 'partial_update']:
            return FinancialBoxCreateSerializer
        return FinancialBoxSerializer

    def create(self, request, *args, **kwargs):
        """Open a new financial box."""
        serializer = self.get_serializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        box = create_box(created_by=request.user, **serializer.validated_data)

        return Response(
            FinancialBoxSerializer(box).data,
            status=status.HTTP_201_CREATED
        )

    def update(self, request, *args, **kwargs):
        """Update box details (PUT or PATCH)."""
        partial = kwargs.pop('partial', False)
        serializer = self.get_serializer(data=request.data, partial=partial)
        serializer.is_valid(raise_exception=True)

        try:
            box = update_box(box_id=self.get_object().id, **serializer.validated_data)
        except InvalidAmountError as e:
            return Response({'error': str(e)}, status=status.HTTP_400_BAD_REQUEST)

        return Response(FinancialBoxSerializer(box).data)

    def destroy(self, request, *args, **kwargs):
        """Delete a box together with its invoices."""
        delete_box(box_id=self.get_object().id)
        return Response(status=status.HTTP_204_NO_CONTENT)

    @extend_schema(request=BoxStatusSerializer, responses={200: FinancialBoxSerializer})
    @action(
        detail=True,
        methods=['post'],
        url_path='status',
        permission_classes=[IsAuthenticated, IsOwnerOperator]
    )
    def set_status(self, request, pk=None):
        """Cancel a draft box (owner only)."""
        serializer = BoxStatusSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        try:
            box = set_box_status(
                box_id=self.get_object().id,
                status=serializer.validated_data['status']
            )
        except InvalidBoxStatusError as e:
            return Response({'error': str(e)}, status=status.HTTP_400_BAD_REQUEST)

        return Response(FinancialBoxSerializer(box).data)

    @extend_schema(
        parameters=[
            OpenApiParameter('date_from', str, description='YYYY-MM-DD'),
            OpenApiParameter('date_to', str, description='YYYY-MM-DD'),
        ],
        responses={200: InvoiceSerializer(many=True)},
    )
    @action(detail=True, methods=['get'])
    def invoices(self, request, pk=None):
        """Invoices attached to this box."""
        box = self.get_object()
        filters = _invoice_filters(request)

        invoices = list_invoices(
            box_id=box.id,
            date_from=filters.get('date_from'),
            date_to=filters.get('date_to'),
            is_paid=filters.get('is_paid'),
        )
        return Response(InvoiceSerializer(invoices, many=True).data)

    @extend_schema(responses={200: OwnerBalanceSerializer})
    @action(detail=False, methods=['get'], url_path='owner-balance')
    def owner_balance(self, request):
        """Sum of all box totals."""
        balance = get_owner_balance()
        balance['currency'] = settings.VESSEL_CURRENCY
        return Response(OwnerBalanceSerializer(balance).data)


class InvoiceViewSet(viewsets.ModelViewSet):
    """
    ViewSet for invoices.

    Amount changes are mirrored onto the box total by the services.

    list: Get invoices (?box=, ?date_from=, ?date_to=, ?is_paid=)
    create: Attach an invoice to a box
    retrieve: Get an invoice
    update: Edit an invoice
    partial_update: Partially edit an invoice
    destroy: Delete an invoice
    """

    queryset = Invoice.objects.select_related('box')
    serializer_class = InvoiceSerializer
    permission_classes = [IsAuthenticated]
    pagination_class = InvoicePagination

    def get_queryset(self):
        """Apply filters from the query string on list."""
        if self.action != 'list':
            return Invoice.objects.select_related('box')

        filters = _invoice_filters(self.request)
        return list_invoices(
            box_id=filters.get('box'),
            date_from=filters.get('date_from'),
            date_to=filters.get('date_to'),
            is_paid=filters.get('is_paid'),
        )

    def get_serializer_class(self):
        """Use different serializers for different actions."""
        if self.action == 'create':
            return InvoiceCreateSerializer
        if self.action in ['update', 'partial_update']:
            return InvoiceUpdateSerializer
        return InvoiceSerializer

    @extend_schema(request=InvoiceCreateSerializer, responses={201: InvoiceSerializer})
    def create(self, request, *args, **kwargs):
        """Attach a new invoice to a box."""
        serializer = self.get_serializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data.copy()

        try:
            invoice = create_invoice(
                box_id=data.pop('box'),
                invoice_number=data.pop('invoice_number', None) or None,
                **data
            )
        except BoxNotFoundError as e:
            return Response({'error': str(e)}, status=status.HTTP_404_NOT_FOUND)
        except (BoxClosedError, InvalidAmountError, DuplicateInvoiceNumberError) as e:
            return Response({'error': str(e)}, status=status.HTTP_400_BAD_REQUEST)

        return Response(InvoiceSerializer(invoice).data, status=status.HTTP_201_CREATED)

    @extend_schema(request=InvoiceUpdateSerializer, responses={200: InvoiceSerializer})
    def update(self, request, *args, **kwargs):
        """Edit an invoice (PUT or PATCH)."""
        kwargs.pop('partial', False)
        invoice = self.get_object()
        serializer = InvoiceUpdateSerializer(data=request.data, partial=True)
        serializer.is_valid(raise_exception=True)

        try:
            invoice = update_invoice(invoice_id=invoice.id, **serializer.validated_data)
        except (BoxClosedError, InvalidAmountError, DuplicateInvoiceNumberError) as e:
            return Response({'error': str(e)}, status=status.HTTP_400_BAD_REQUEST)

        return Response(InvoiceSerializer(invoice).data)

    def destroy(self, request, *args, **kwargs):
        """Delete an invoice and take its amount off the box."""
        invoice = self.get_object()

        try:
            delete_invoice(invoice_id=invoice.id)
        except BoxClosedError as e:
            return Response({'error': str(e)}, status=status.HTTP_400_BAD_REQUEST)

        return Response(status=status.HTTP_204_NO_CONTENT)

    @extend_schema(request=InvoicePaidSerializer, responses={200: InvoiceSerializer})
    @action(detail=True, methods=['post'])
    def mark_paid(self, request, pk=None):
        """Mark an invoice as paid (or unpaid with is_paid=false)."""
        serializer = InvoicePaidSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        invoice = set_invoice_paid(
            invoice_id=self.get_object().id,
            is_paid=serializer.validated_data['is_paid']
        )
        return Response(InvoiceSerializer(invoice).data)

    @extend_schema(
        parameters=[OpenApiParameter('box', str, description='Limit to one box')],
        responses={200: InvoiceStatsSerializer},
    )
    @action(detail=False, methods=['get'])
    def stats(self, request):
        """Total, paid and unpaid invoice amounts and counts."""
        filters = _invoice_filters(request)
        stats = get_invoice_stats(box_id=filters.get('box'))
        return Response(InvoiceStatsSerializer(stats).data)

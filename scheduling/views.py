"""Views for the studio booking API."""

from django.http import Http404
from django.shortcuts import get_object_or_404
from django.utils import timezone

from rest_framework import status
from rest_framework.permissions import IsAdminUser, IsAuthenticated
from rest_framework.response import Response
from rest_framework.views import APIView

from . import services
from .filters import InstanceFilter
from .models import Booking, ClassTemplate, SessionType
from .serializers import (
    BookingCreateSerializer,
    BookingQuerySerializer,
    BookingReadSerializer,
    BookingRescheduleSerializer,
    ClassTemplateReadSerializer,
    ClassTemplateWriteSerializer,
    CreditPurchaseSerializer,
    CreditTransactionSerializer,
    EventInstanceSerializer,
    InstanceQuerySerializer,
    InstanceUpdateSerializer,
    SessionTypeSerializer,
    SlotAvailabilitySerializer,
    SlotQuerySerializer,
)
from .types import SeriesRecurrence


def _bad_request(exc):
    return Response({'detail': str(exc)}, status=status.HTTP_400_BAD_REQUEST)


def _get_instance_or_404(instance_id):
    try:
        instance = services.get_instance(instance_id)
    except ValueError:
        raise Http404("Malformed instance id") from None
    if instance is None:
        raise Http404("No such class instance")
    return instance


class AdminWriteMixin:
    """Anyone may read; only administrators may write."""

    def get_permissions(self):
        if self.request.method in ('GET', 'HEAD', 'OPTIONS'):
            return []
        return [IsAdminUser()]


class ClassTemplateListCreateView(AdminWriteMixin, APIView):
    """
    List all class templates or create a new one.

    GET /api/templates/ - List templates
    POST /api/templates/ - Create a template
    """

    def get(self, request):
        """List all class templates."""
        templates = ClassTemplate.objects.all()
        serializer = ClassTemplateReadSerializer(templates, many=True)
        return Response(serializer.data)

    def post(self, request):
        """Create a class template."""
        serializer = ClassTemplateWriteSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        template = serializer.save()

        response_serializer = ClassTemplateReadSerializer(template)
        return Response(response_serializer.data, status=status.HTTP_201_CREATED)


class ClassTemplateDetailView(AdminWriteMixin, APIView):
    """
    Retrieve, update, or delete a class template.

    GET /api/templates/{id}/ - Retrieve template
    PATCH /api/templates/{id}/ - Update template
    DELETE /api/templates/{id}/ - Delete template and its overrides
    """

    def get(self, request, pk):
        """Retrieve a class template."""
        template = get_object_or_404(ClassTemplate, pk=pk)
        serializer = ClassTemplateReadSerializer(template)
        return Response(serializer.data)

    def patch(self, request, pk):
        """Update a class template."""
        template = get_object_or_404(ClassTemplate, pk=pk)
        serializer = ClassTemplateWriteSerializer(template, data=request.data, partial=True)
        serializer.is_valid(raise_exception=True)
        updated = serializer.save()

        response_serializer = ClassTemplateReadSerializer(updated)
        return Response(response_serializer.data)

    def delete(self, request, pk):
        """Delete a class template."""
        template = get_object_or_404(ClassTemplate, pk=pk)
        name = template.name
        template.delete()

        return Response({
            'message': f'Class "{name}" has been deleted.'
        }, status=status.HTTP_200_OK)


class EventInstanceListView(APIView):
    """
    List visible class instances.

    GET /api/instances/?weeks=&tags=&instructor=&time_of_day=&search=
    """

    def get(self, request):
        """List instances from now to the end of the horizon."""
        query_serializer = InstanceQuerySerializer(data=request.query_params)
        query_serializer.is_valid(raise_exception=True)
        data = query_serializer.validated_data

        criteria = InstanceFilter(
            tags=data['tags'],
            instructor_id=data['instructor'],
            time_of_day=data['time_of_day'],
            search=data['search'],
        )
        now = timezone.localtime()
        instances = services.list_instances(now, data.get('weeks'), criteria)

        serializer = EventInstanceSerializer(instances, many=True, context={'now': now})
        return Response(serializer.data)


class EventInstanceDetailView(APIView):
    """
    Retrieve, move, or cancel a single class instance.

    GET /api/instances/{instance_id}/ - Retrieve instance
    PATCH /api/instances/{instance_id}/ - Move or resize this occurrence
    DELETE /api/instances/{instance_id}/ - Cancel this occurrence only
    """

    def get_permissions(self):
        if self.request.method == 'GET':
            return []
        return [IsAdminUser()]

    def get(self, request, instance_id):
        instance = _get_instance_or_404(instance_id)
        serializer = EventInstanceSerializer(instance, context={'now': timezone.localtime()})
        return Response(serializer.data)

    def patch(self, request, instance_id):
        """Move or resize one occurrence."""
        instance = _get_instance_or_404(instance_id)
        serializer = InstanceUpdateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        try:
            services.update_instance(
                instance,
                start_at=serializer.validated_data.get('start_at'),
                duration_minutes=serializer.validated_data.get('duration_minutes'),
            )
        except ValueError as exc:
            return _bad_request(exc)

        updated = services.get_instance(instance_id)
        response_serializer = EventInstanceSerializer(updated, context={'now': timezone.localtime()})
        return Response(response_serializer.data)

    def delete(self, request, instance_id):
        """Cancel one occurrence."""
        instance = _get_instance_or_404(instance_id)

        try:
            services.cancel_instance(instance)
        except ValueError as exc:
            return _bad_request(exc)

        return Response({
            'message': f'Class "{instance.name}" on {instance.start_at.date()} has been cancelled.'
        }, status=status.HTTP_200_OK)


class EventInstanceJoinView(APIView):
    """
    Attempt to join a class instance.

    POST /api/instances/{instance_id}/join/
    """

    permission_classes = [IsAuthenticated]

    def post(self, request, instance_id):
        """Decide the join attempt; the join link is only returned on admit."""
        instance = _get_instance_or_404(instance_id)
        viewer = services.viewer_for_user(request.user)
        decision = services.join_instance(viewer, instance, timezone.localtime())

        payload = {
            'outcome': decision.outcome.value,
            'reason': decision.reason,
        }
        if decision.admitted:
            payload['join_link'] = instance.join_link
            return Response(payload, status=status.HTTP_200_OK)
        return Response(payload, status=status.HTTP_403_FORBIDDEN)


class ProviderSessionTypeListView(APIView):
    """
    List the session types a provider offers.

    GET /api/providers/{provider_id}/session-types/
    """

    def get(self, request, provider_id):
        session_types = SessionType.objects.filter(provider_id=provider_id, is_active=True)
        serializer = SessionTypeSerializer(session_types, many=True)
        return Response(serializer.data)


class ProviderSlotListView(APIView):
    """
    List a provider's bookable slots for one date.

    GET /api/providers/{provider_id}/slots/?date=YYYY-MM-DD&session_type={id}
    """

    def get(self, request, provider_id):
        query_serializer = SlotQuerySerializer(data=request.query_params)
        query_serializer.is_valid(raise_exception=True)

        session_type = get_object_or_404(
            SessionType,
            pk=query_serializer.validated_data['session_type'],
            provider_id=provider_id,
        )
        slots = services.get_slot_availability(
            provider_id,
            session_type,
            query_serializer.validated_data['date'],
            timezone.localtime(),
        )

        serializer = SlotAvailabilitySerializer(slots, many=True)
        return Response(serializer.data)


class BookingListCreateView(APIView):
    """
    List the current user's bookings or book a session.

    GET /api/bookings/?series=&upcoming= - List own bookings
    POST /api/bookings/ - Book a session or a recurring series
    """

    permission_classes = [IsAuthenticated]

    def get(self, request):
        query_serializer = BookingQuerySerializer(data=request.query_params)
        query_serializer.is_valid(raise_exception=True)
        data = query_serializer.validated_data

        bookings = Booking.objects.for_user(request.user.get_username())
        if data.get('series'):
            bookings = bookings.in_series(data['series'])
        if data['upcoming']:
            bookings = bookings.upcoming(timezone.now())

        bookings = bookings.select_related('session_type')
        serializer = BookingReadSerializer(bookings, many=True)
        return Response(serializer.data)

    def post(self, request):
        """Book a session; a series may be partially booked if credits run out."""
        serializer = BookingCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        recurrence = data.get('recurrence')
        series_recurrence = None
        if recurrence:
            series_recurrence = SeriesRecurrence(
                pattern=recurrence['pattern'],
                until=recurrence['until'],
            )

        try:
            result = services.book_session(
                user_id=request.user.get_username(),
                session_type=data['session_type'],
                day=data['date'],
                time_of_day=data['time'],
                now=timezone.localtime(),
                series_recurrence=series_recurrence,
            )
        except ValueError as exc:
            return _bad_request(exc)

        settlement = result.settlement
        payload = {
            'bookings': BookingReadSerializer(result.bookings, many=True).data,
            'remaining_balance': settlement.remaining_balance,
            'failed_occurrence': None,
        }
        if settlement.failed_entry is not None:
            payload['failed_occurrence'] = {
                'occurrence_index': settlement.failed_entry.occurrence_index,
                'date': settlement.failed_entry.date.isoformat(),
                'shortfall': settlement.shortfall,
                'skipped': len(settlement.skipped),
                'reason': settlement.reason,
            }

        if not result.bookings:
            return Response(payload, status=status.HTTP_402_PAYMENT_REQUIRED)
        return Response(payload, status=status.HTTP_201_CREATED)


class BookingCancelView(APIView):
    """
    Cancel a booking and refund its credits.

    POST /api/bookings/{id}/cancel/
    """

    permission_classes = [IsAuthenticated]

    def post(self, request, pk):
        booking = get_object_or_404(Booking, pk=pk, user_id=request.user.get_username())

        try:
            services.cancel_booking(booking, timezone.localtime())
        except ValueError as exc:
            return _bad_request(exc)

        return Response(BookingReadSerializer(booking).data)


class BookingRescheduleView(APIView):
    """
    Move a booking to a new date and time.

    POST /api/bookings/{id}/reschedule/
    """

    permission_classes = [IsAuthenticated]

    def post(self, request, pk):
        booking = get_object_or_404(Booking, pk=pk, user_id=request.user.get_username())
        serializer = BookingRescheduleSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        try:
            services.reschedule_booking(
                booking,
                serializer.validated_data['date'],
                serializer.validated_data['time'],
                timezone.localtime(),
            )
        except ValueError as exc:
            return _bad_request(exc)

        return Response(BookingReadSerializer(booking).data)


class CreditSummaryView(APIView):
    """
    Show the current user's credit balance and history.

    GET /api/credits/
    """

    permission_classes = [IsAuthenticated]

    def get(self, request):
        balance, transactions = services.get_credit_summary(request.user.get_username())
        return Response({
            'balance': balance,
            'transactions': CreditTransactionSerializer(transactions, many=True).data,
        })


class CreditPurchaseView(APIView):
    """
    Record a credit purchase for the current user.

    POST /api/credits/purchase/
    """

    permission_classes = [IsAuthenticated]

    def post(self, request):
        serializer = CreditPurchaseSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        transaction = services.purchase_credits(
            request.user.get_username(),
            serializer.validated_data['amount'],
            serializer.validated_data['description'],
        )
        return Response(CreditTransactionSerializer(transaction).data, status=status.HTTP_201_CREATED)

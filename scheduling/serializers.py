"""
Serializers for the studio booking API.
"""

from rest_framework import serializers

from . import clock
from .conf import get_setting
from .models import Booking, ClassTemplate, CreditTransaction, SessionType
from .series import SERIES_STEPS
from .filters import TIME_OF_DAY_BUCKETS


class ClassTemplateReadSerializer(serializers.ModelSerializer):
    """Serializer for reading/displaying ClassTemplate (output)."""

    class Meta:
        model = ClassTemplate
        fields = [
            'id',
            'name',
            'instructor_id',
            'description',
            'start_at',
            'duration_minutes',
            'tags',
            'join_link',
            'max_participants',
            'is_recurring',
            'frequency',
            'days_of_week',
            'is_active',
            'created_at',
            'updated_at',
        ]


class ClassTemplateWriteSerializer(serializers.ModelSerializer):
    """Serializer for creating and updating ClassTemplate (input)."""

    tags = serializers.ListField(
        child=serializers.CharField(max_length=50),
        required=False
    )
    days_of_week = serializers.ListField(
        child=serializers.IntegerField(min_value=0, max_value=6),
        required=False
    )
    duration_minutes = serializers.IntegerField(min_value=1, required=False)

    class Meta:
        model = ClassTemplate
        fields = [
            'name',
            'instructor_id',
            'description',
            'start_at',
            'duration_minutes',
            'tags',
            'join_link',
            'max_participants',
            'is_recurring',
            'frequency',
            'days_of_week',
            'is_active',
        ]

    def validate_days_of_week(self, value):
        return sorted(set(value))


class EventInstanceSerializer(serializers.Serializer):
    """
    Serializer for a derived class instance (output only).

    Live state is computed against ``context['now']``.
    """

    instance_id = serializers.CharField()
    template_id = serializers.CharField()
    name = serializers.CharField()
    instructor_id = serializers.CharField()
    description = serializers.CharField()
    tags = serializers.ListField(child=serializers.CharField())
    start_at = serializers.DateTimeField()
    end_at = serializers.DateTimeField()
    duration_minutes = serializers.IntegerField()
    max_participants = serializers.IntegerField(allow_null=True)
    status = serializers.CharField()
    is_exception = serializers.BooleanField()
    state = serializers.SerializerMethodField()
    can_join = serializers.SerializerMethodField()
    join_opens_at = serializers.SerializerMethodField()
    countdown = serializers.SerializerMethodField()

    def get_state(self, instance):
        return clock.classify(instance, self.context['now'], get_setting('GRACE_MINUTES')).value

    def get_can_join(self, instance):
        return clock.can_join_now(instance, self.context['now'], get_setting('JOIN_LEAD_MINUTES'))

    def get_join_opens_at(self, instance):
        opens_at = clock.join_window_opens_at(instance, get_setting('JOIN_LEAD_MINUTES'))
        return serializers.DateTimeField().to_representation(opens_at)

    def get_countdown(self, instance):
        return clock.format_countdown(instance, self.context['now'])


class InstanceQuerySerializer(serializers.Serializer):
    """Serializer for instance listing query parameters."""

    weeks = serializers.IntegerField(min_value=1, max_value=52, required=False)
    tags = serializers.CharField(required=False, allow_blank=True, default='')
    instructor = serializers.CharField(required=False, allow_blank=True, default='')
    time_of_day = serializers.ChoiceField(
        choices=list(TIME_OF_DAY_BUCKETS),
        required=False,
        allow_blank=True,
        default=''
    )
    search = serializers.CharField(required=False, allow_blank=True, default='')

    def validate_tags(self, value):
        return tuple(tag.strip() for tag in value.split(',') if tag.strip())


class InstanceUpdateSerializer(serializers.Serializer):
    """Serializer for moving or resizing a single occurrence."""

    start_at = serializers.DateTimeField(required=False)
    duration_minutes = serializers.IntegerField(min_value=1, required=False)


class BookingQuerySerializer(serializers.Serializer):
    """Serializer for booking listing query parameters."""

    series = serializers.UUIDField(required=False)
    upcoming = serializers.BooleanField(required=False, default=False)


class SlotQuerySerializer(serializers.Serializer):
    date = serializers.DateField()
    session_type = serializers.IntegerField()


class SessionTypeSerializer(serializers.ModelSerializer):

    class Meta:
        model = SessionType
        fields = [
            'id',
            'provider_id',
            'name',
            'description',
            'duration_minutes',
            'credit_cost',
            'allow_recurring',
            'min_lead_hours',
            'max_advance_days',
            'min_cancel_hours',
            'min_reschedule_hours',
            'is_active',
        ]


class SlotAvailabilitySerializer(serializers.Serializer):
    """Serializer for a projected slot with its booking restriction verdict."""

    date = serializers.DateField(source='slot.date')
    start_time = serializers.TimeField(source='slot.start_time', format='%H:%M')
    duration_minutes = serializers.IntegerField(source='slot.duration_minutes')
    allowed = serializers.BooleanField()
    reason = serializers.CharField(allow_null=True)


class BookingReadSerializer(serializers.ModelSerializer):
    """Serializer for reading/displaying Booking (output)."""

    session_type_name = serializers.CharField(source='session_type.name', read_only=True)
    end_at = serializers.DateTimeField(read_only=True)
    is_recurring = serializers.BooleanField(read_only=True)

    class Meta:
        model = Booking
        fields = [
            'id',
            'user_id',
            'provider_id',
            'session_type',
            'session_type_name',
            'start_at',
            'end_at',
            'duration_minutes',
            'credit_cost',
            'status',
            'series_id',
            'occurrence_index',
            'is_recurring',
            'created_at',
        ]


class SeriesRecurrenceSerializer(serializers.Serializer):
    pattern = serializers.ChoiceField(choices=list(SERIES_STEPS))
    until = serializers.DateField()


class BookingCreateSerializer(serializers.Serializer):
    """Serializer for booking a session, optionally as a recurring series."""

    session_type = serializers.PrimaryKeyRelatedField(queryset=SessionType.objects.all())
    date = serializers.DateField()
    time = serializers.TimeField()
    recurrence = SeriesRecurrenceSerializer(required=False, allow_null=True)

    def validate(self, data):
        """Reject recurrence the session type does not allow."""
        recurrence = data.get('recurrence')
        if not recurrence:
            return data

        if not data['session_type'].allow_recurring:
            raise serializers.ValidationError({
                'recurrence': 'This session type cannot be booked as a recurring series.'
            })
        if recurrence['until'] < data['date']:
            raise serializers.ValidationError({
                'recurrence': 'Series end date must not be before the first session.'
            })
        return data


class BookingRescheduleSerializer(serializers.Serializer):
    date = serializers.DateField()
    time = serializers.TimeField()


class CreditTransactionSerializer(serializers.ModelSerializer):

    class Meta:
        model = CreditTransaction
        fields = ['id', 'kind', 'amount', 'description', 'booking', 'created_at']


class CreditPurchaseSerializer(serializers.Serializer):
    amount = serializers.IntegerField(min_value=1)
    description = serializers.CharField(required=False, allow_blank=True, default='')

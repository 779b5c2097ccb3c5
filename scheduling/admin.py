"""
Admin configuration for the scheduling app.
"""

from django.contrib import admin
from .models import (
    Booking,
    ClassTemplate,
    CreditTransaction,
    Enrollment,
    InstanceOverride,
    Membership,
    SessionType,
    WeeklyAvailability,
)


class InstanceOverrideInline(admin.TabularInline):
    model = InstanceOverride
    extra = 0


@admin.register(ClassTemplate)
class ClassTemplateAdmin(admin.ModelAdmin):
    """Admin interface for ClassTemplate model."""

    list_display = ['name', 'instructor_id', 'start_at', 'duration_minutes', 'is_recurring', 'frequency', 'is_active']
    list_filter = ['is_active', 'is_recurring', 'frequency', 'created_at']
    search_fields = ['name', 'description', 'instructor_id']
    date_hierarchy = 'start_at'
    inlines = [InstanceOverrideInline]

    fieldsets = (
        ('Basic Information', {
            'fields': ('name', 'instructor_id', 'description', 'tags', 'is_active')
        }),
        ('Schedule', {
            'fields': ('start_at', 'duration_minutes', 'join_link', 'max_participants')
        }),
        ('Recurrence Rules', {
            'fields': ('is_recurring', 'frequency', 'days_of_week')
        }),
        ('Metadata', {
            'fields': ('created_at', 'updated_at'),
            'classes': ('collapse',)
        }),
    )

    readonly_fields = ['created_at', 'updated_at']


@admin.register(SessionType)
class SessionTypeAdmin(admin.ModelAdmin):
    list_display = ['name', 'provider_id', 'duration_minutes', 'credit_cost', 'allow_recurring', 'is_active']
    list_filter = ['is_active', 'allow_recurring']
    search_fields = ['name', 'provider_id']

    fieldsets = (
        ('Basic Information', {
            'fields': ('provider_id', 'name', 'description', 'is_active')
        }),
        ('Pricing', {
            'fields': ('duration_minutes', 'credit_cost', 'allow_recurring')
        }),
        ('Booking Restrictions', {
            'fields': ('min_lead_hours', 'max_advance_days', 'min_cancel_hours', 'min_reschedule_hours')
        }),
    )


@admin.register(WeeklyAvailability)
class WeeklyAvailabilityAdmin(admin.ModelAdmin):
    list_display = ['provider_id', 'day_of_week', 'start_time', 'end_time']
    list_filter = ['day_of_week']
    search_fields = ['provider_id']


@admin.register(Booking)
class BookingAdmin(admin.ModelAdmin):
    """Admin interface for Booking model."""

    list_display = ['user_id', 'provider_id', 'session_type', 'start_at', 'status', 'credit_cost', 'series_id']
    list_filter = ['status', 'session_type']
    search_fields = ['user_id', 'provider_id']
    date_hierarchy = 'start_at'
    readonly_fields = ['created_at', 'updated_at']


@admin.register(CreditTransaction)
class CreditTransactionAdmin(admin.ModelAdmin):
    list_display = ['user_id', 'kind', 'amount', 'description', 'created_at']
    list_filter = ['kind']
    search_fields = ['user_id', 'description']
    readonly_fields = ['created_at']


@admin.register(Membership)
class MembershipAdmin(admin.ModelAdmin):
    list_display = ['user_id', 'is_active', 'tier', 'expires_at']
    list_filter = ['is_active', 'tier']
    search_fields = ['user_id']


@admin.register(Enrollment)
class EnrollmentAdmin(admin.ModelAdmin):
    list_display = ['user_id', 'instance_id', 'joined_at']
    search_fields = ['user_id', 'instance_id']

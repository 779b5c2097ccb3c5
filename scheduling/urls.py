"""
URL routing for the scheduling API.
"""

from django.urls import path
from .views import (
    BookingCancelView,
    BookingListCreateView,
    BookingRescheduleView,
    ClassTemplateDetailView,
    ClassTemplateListCreateView,
    CreditPurchaseView,
    CreditSummaryView,
    EventInstanceDetailView,
    EventInstanceJoinView,
    EventInstanceListView,
    ProviderSessionTypeListView,
    ProviderSlotListView,
)

urlpatterns = [
    path('templates/', ClassTemplateListCreateView.as_view(), name='template-list-create'),
    path('templates/<int:pk>/', ClassTemplateDetailView.as_view(), name='template-detail'),
    path('instances/', EventInstanceListView.as_view(), name='instance-list'),
    path('instances/<str:instance_id>/', EventInstanceDetailView.as_view(), name='instance-detail'),
    path('instances/<str:instance_id>/join/', EventInstanceJoinView.as_view(), name='instance-join'),
    path('providers/<str:provider_id>/session-types/', ProviderSessionTypeListView.as_view(), name='provider-session-types'),
    path('providers/<str:provider_id>/slots/', ProviderSlotListView.as_view(), name='provider-slots'),
    path('bookings/', BookingListCreateView.as_view(), name='booking-list-create'),
    path('bookings/<int:pk>/cancel/', BookingCancelView.as_view(), name='booking-cancel'),
    path('bookings/<int:pk>/reschedule/', BookingRescheduleView.as_view(), name='booking-reschedule'),
    path('credits/', CreditSummaryView.as_view(), name='credit-summary'),
    path('credits/purchase/', CreditPurchaseView.as_view(), name='credit-purchase'),
]

"""Billing App URLs - Invoices.

Prefix: /api/
Routes:
    GET/POST          /api/invoices/             - List/Create invoices
    GET/PUT/PATCH/DEL /api/invoices/<pk>/        - Retrieve/record payment/delete
    POST              /api/invoices/<pk>/cancel/ - Cancel invoice (admin)
"""

from django.urls import path

from clinic_backend.billing.views import (
    InvoiceCancelView,
    InvoiceDetailView,
    InvoiceListCreateView,
)

app_name = 'billing'

urlpatterns = [
    path('invoices/', InvoiceListCreateView.as_view(), name='list'),
    path('invoices/<int:pk>/', InvoiceDetailView.as_view(), name='detail'),
    path('invoices/<int:pk>/cancel/', InvoiceCancelView.as_view(), name='cancel'),
]

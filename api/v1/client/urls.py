"""
URL configuration for client API endpoints.
"""

from django.urls import path

from api.v1.client import views

app_name = "client"

urlpatterns = [
    path("validate-key", views.ValidateKeyView.as_view(), name="validate-key"),
    path("validate-license", views.ValidateLicenseView.as_view(), name="validate-license"),
]

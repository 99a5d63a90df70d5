"""
URL configuration for admin API endpoints.
"""

from django.urls import path

from api.v1.admin import views

app_name = "admin_api"

urlpatterns = [
    path("keys", views.ListKeysView.as_view(), name="list-keys"),
    path("keys/generate", views.GenerateKeysView.as_view(), name="generate-keys"),
    path("keys/reserve", views.ReserveKeyView.as_view(), name="reserve-key"),
    path("keys/reset-hwid", views.ResetHardwareIdView.as_view(), name="reset-hwid"),
    path("keys/delete", views.DeleteKeyView.as_view(), name="delete-key"),
    path("users", views.ListUsersView.as_view(), name="list-users"),
    path("users/ban", views.BanUsersView.as_view(), name="ban-users"),
    path("users/unban", views.UnbanUsersView.as_view(), name="unban-users"),
    path("stats", views.KeyStatisticsView.as_view(), name="stats"),
]

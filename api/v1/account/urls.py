"""
URL configuration for account API endpoints.
"""

from django.urls import path

from api.v1.account import views

app_name = "account"

urlpatterns = [
    path("register", views.RegisterView.as_view(), name="register"),
    path("login", views.LoginView.as_view(), name="login"),
    path(
        "verification-codes/send",
        views.SendVerificationCodeView.as_view(),
        name="send-verification-code",
    ),
    path("verification-codes/verify", views.VerifyCodeView.as_view(), name="verify-code"),
    path("reset-password", views.ResetPasswordView.as_view(), name="reset-password"),
    path("me", views.MeView.as_view(), name="me"),
    path("change-email", views.ChangeEmailView.as_view(), name="change-email"),
    path("keys", views.MyKeysView.as_view(), name="my-keys"),
    path("keys/claim", views.ClaimKeyView.as_view(), name="claim-key"),
    path("keys/reactivate", views.ReactivateKeyView.as_view(), name="reactivate-key"),
]

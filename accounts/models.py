"""
Model registry for the accounts app.
"""
from accounts.infrastructure.models import AdminApiKey, User  # noqa: F401

"""
Fixtures shared by the API tests.
"""

import re

import pytest
from django.core.cache import cache


@pytest.fixture(autouse=True)
def clear_cache():
    """Verification codes and rate-limit counters live in the cache."""
    cache.clear()
    yield
    cache.clear()


@pytest.fixture
def sent_code(mailoutbox):
    """Return the verification code from the most recent email."""

    def latest():
        match = re.search(r"Your code: (\d{6})", mailoutbox[-1].body)
        return match.group(1)

    return latest

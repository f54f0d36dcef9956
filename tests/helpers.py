# tests/helpers.py
"""Small helpers shared by API tests."""

from roadwatch.core.security import create_access_token
from roadwatch.models import Account


def bearer(account: Account) -> dict[str, str]:
    """Return authorization headers carrying a token for ``account``."""
    return {"Authorization": f"Bearer {create_access_token(account.id)}"}

"""Shared API dependencies for authentication and common functionality."""

from typing import Annotated

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError
from sqlalchemy.orm import Session

from roadwatch.core.security import decode_access_token
from roadwatch.db.session import get_db
from roadwatch.models import Account
from roadwatch.services.accounts import get_or_create_account
from roadwatch.services.ledger import TokenEconomyEngine

# HTTP Bearer scheme for JWT authentication
bearer_scheme = HTTPBearer()

# Type alias for database session dependency
SessionDep = Annotated[Session, Depends(get_db)]


def get_current_user(
    credentials: Annotated[HTTPAuthorizationCredentials, Depends(bearer_scheme)],
    db: SessionDep,
) -> Account:
    """Get the authenticated account from the bearer token.

    The account is provisioned on first authentication using the optional
    ``name`` and ``picture`` claims.

    Raises:
        HTTPException: If the token is invalid or carries no subject.
    """
    try:
        payload = decode_access_token(credentials.credentials)
    except JWTError as err:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Could not validate credentials",
        ) from err

    subject = payload.get("sub")
    if not subject or not isinstance(subject, str):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Could not validate credentials",
        )
    return get_or_create_account(
        db,
        subject,
        full_name=payload.get("name"),
        avatar_url=payload.get("picture"),
    )


def get_engine(db: SessionDep) -> TokenEconomyEngine:
    """Return a token economy engine bound to the request session."""
    return TokenEconomyEngine(db)


# Type alias for current user dependency
CurrentUserDep = Annotated[Account, Depends(get_current_user)]
EngineDep = Annotated[TokenEconomyEngine, Depends(get_engine)]


def require_admin(current_user: CurrentUserDep) -> Account:
    """Reject callers without the admin flag."""
    if not current_user.is_admin:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Not authorized")
    return current_user


AdminUserDep = Annotated[Account, Depends(require_admin)]

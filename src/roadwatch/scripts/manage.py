# src/roadwatch/scripts/manage.py
"""Operator commands: mint dev tokens, grant admin, audit counters."""
from __future__ import annotations

import argparse
import json
import logging
import sys

from roadwatch.core.logging import configure_logging
from roadwatch.core.security import create_access_token
from roadwatch.db.session import SessionLocal
from roadwatch.services.accounts import get_or_create_account
from roadwatch.services.counters import find_counter_drift
from roadwatch.services.unit_of_work import unit_of_work

logger = logging.getLogger(__name__)


def issue_token(account_id: str, name: str | None, minutes: int | None) -> str:
    """Return a bearer token for ``account_id``, e.g. for local testing."""
    claims = {"name": name} if name else None
    return create_access_token(account_id, expires_minutes=minutes, extra_claims=claims)


def grant_admin(account_id: str, revoke: bool = False) -> None:
    """Set or clear the admin flag on an account, creating it if needed."""
    with SessionLocal() as db:
        account = get_or_create_account(db, account_id)
        with unit_of_work(db, "grant_admin"):
            account.is_admin = not revoke
    logger.info("Account %s admin=%s", account_id, not revoke)


def audit_counters() -> int:
    """Print reports whose vote/comment counters drifted; return their number."""
    with SessionLocal() as db:
        drift = find_counter_drift(db)
    for row in drift:
        print(json.dumps(row))
    return len(drift)


def main() -> None:
    configure_logging()
    parser = argparse.ArgumentParser(description="RoadWatch operator commands")
    sub = parser.add_subparsers(dest="command", required=True)

    token_cmd = sub.add_parser("token", help="Print an access token for an account id")
    token_cmd.add_argument("account_id")
    token_cmd.add_argument("--name", default=None, help="Display name claim")
    token_cmd.add_argument("--minutes", type=int, default=None, help="Token lifetime")

    admin_cmd = sub.add_parser("grant-admin", help="Flag an account as administrator")
    admin_cmd.add_argument("account_id")
    admin_cmd.add_argument("--revoke", action="store_true", help="Clear the flag instead")

    sub.add_parser("audit-counters", help="Report vote/comment counter drift")

    args = parser.parse_args()
    if args.command == "token":
        print(issue_token(args.account_id, args.name, args.minutes))
    elif args.command == "grant-admin":
        grant_admin(args.account_id, args.revoke)
    elif args.command == "audit-counters":
        sys.exit(1 if audit_counters() else 0)


if __name__ == "__main__":
    main()

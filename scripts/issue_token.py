"""
Issue an access token for an existing operator.

Usage:
    python scripts/issue_token.py <username> [hours]
"""

import asyncio
import sys
from datetime import timedelta

from sqlalchemy import select

from landbook.auth import create_access_token
from landbook.db import get_db_context
from landbook.models import User


async def issue(username: str, hours: int) -> int:
    async with get_db_context() as db:
        user = (await db.execute(select(User).where(User.username == username))).scalar_one_or_none()

    if not user:
        print(f"User not found: {username}")
        return 1
    if not user.is_active:
        print(f"User is disabled: {username}")
        return 1

    token = create_access_token(
        user.id,
        user.tenant_id,
        user.role.value,
        expires_delta=timedelta(hours=hours),
    )
    print(token)
    return 0


if __name__ == "__main__":
    if len(sys.argv) < 2:
        print(__doc__)
        sys.exit(2)
    sys.exit(asyncio.run(issue(sys.argv[1], int(sys.argv[2]) if len(sys.argv) > 2 else 12)))

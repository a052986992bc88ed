"""
Explicit per-request operator context.
"""

from dataclasses import dataclass
from typing import Optional

from landbook.models import UserRole


@dataclass(frozen=True)
class RequestContext:
    """Who is acting, and for which tenant.

    Passed into every service call; there is no global current user.
    """

    tenant_id: Optional[int]
    user_id: int
    role: UserRole

    @property
    def is_admin(self) -> bool:
        return self.role in (UserRole.ADMIN, UserRole.SUPER_ADMIN)

    @property
    def is_super_admin(self) -> bool:
        return self.role == UserRole.SUPER_ADMIN

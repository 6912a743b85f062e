from typing import Optional
from uuid import UUID

from pydantic import BaseModel

from venue_booking.domain.enums import Role


class UserProfile(BaseModel):
    """
    Identity of the caller, as forwarded by the authenticating gateway.
    """

    user_id: Optional[UUID] = None
    role: Role = Role.GUEST
    email: Optional[str] = None
    full_name: Optional[str] = None

    @property
    def can_register_payments(self) -> bool:
        return self.role in (Role.VENDOR, Role.ADMIN)

    @property
    def is_admin(self) -> bool:
        return self.role == Role.ADMIN

    @property
    def vendor_scope(self) -> Optional[UUID]:
        """Vendor whose data the caller is limited to; None for admins."""
        return None if self.is_admin else self.user_id

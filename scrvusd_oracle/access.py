"""Role-based capabilities gating oracle writes."""

from collections.abc import Hashable

from scrvusd_oracle.constants import DEFAULT_ADMIN_ROLE
from scrvusd_oracle.errors import Unauthorized


class AccessControl:
    """
    Capability set mapping (role, principal) to membership.

    Every role is administered by DEFAULT_ADMIN_ROLE. There is no superuser: once the last admin
    revokes or renounces its role, no role can be granted or revoked again and every admin-gated
    call fails for good.
    """

    def __init__(self, admin: Hashable) -> None:
        self._members: set[tuple[str, Hashable]] = {(DEFAULT_ADMIN_ROLE, admin)}

    def has_role(self, role: str, principal: Hashable) -> bool:
        return (role, principal) in self._members

    def check_role(self, role: str, principal: Hashable) -> None:
        if not self.has_role(role, principal):
            raise Unauthorized(role, principal)

    def grant_role(self, role: str, principal: Hashable, *, sender: Hashable) -> None:
        self.check_role(DEFAULT_ADMIN_ROLE, sender)
        self._members.add((role, principal))

    def revoke_role(self, role: str, principal: Hashable, *, sender: Hashable) -> None:
        self.check_role(DEFAULT_ADMIN_ROLE, sender)
        self._members.discard((role, principal))

    def renounce_role(self, role: str, *, sender: Hashable) -> None:
        """Drop the sender's own role; no admin rights needed."""
        self._members.discard((role, sender))

"""EmailProvider protocol — services depend on this, not the concrete implementation.

Implementations return False instead of raising; a failed send is logged by
the provider and never changes what the client is told.
"""

from typing import Optional, Protocol


class EmailProvider(Protocol):
    async def send_verification_email(
        self, email: str, user_name: Optional[str], token: str
    ) -> bool: ...

    async def send_password_reset_email(
        self, email: str, user_name: Optional[str], token: str
    ) -> bool: ...

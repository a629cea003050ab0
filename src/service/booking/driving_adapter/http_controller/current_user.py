from uuid import UUID

from fastapi import Header


async def get_current_user_id(x_user_id: UUID = Header(..., alias='X-User-Id')) -> UUID:
    """Caller identity as forwarded by the gateway in front of this service."""
    return x_user_id

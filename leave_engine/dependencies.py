"""Shared FastAPI dependencies."""

import uuid
from typing import Optional

from fastapi import Header


async def get_actor_id(
    x_actor_id: Optional[uuid.UUID] = Header(
        default=None,
        description="Principal performing the call, resolved by the upstream auth layer.",
    ),
) -> Optional[uuid.UUID]:
    """Caller identity for audit attribution.

    Authentication happens upstream; the gateway forwards the resolved
    principal in ``X-Actor-Id``.
    """
    return x_actor_id

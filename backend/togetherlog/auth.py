"""
TogetherLog Backend - Caller Identity
======================================

What:  FastAPI dependency resolving the authenticated user id.
How:   Session tokens are validated by the API gateway in front of this
       service, which forwards the user's id in the X-User-ID header.
       This dependency only checks that the header is present and is a UUID.
Who:   Used by the /api/logs, /api/entries and /api/tags routers. The
       /workers/* routes are internal and take no caller identity.
"""

import logging
from typing import Optional
from uuid import UUID

from fastapi import Header

from togetherlog.exceptions import AuthenticationError

logger = logging.getLogger(__name__)

USER_ID_HEADER = "X-User-ID"


async def get_current_user_id(
    x_user_id: Optional[str] = Header(default=None, alias=USER_ID_HEADER),
) -> UUID:
    """
    Raises:
        AuthenticationError: header missing (→ 401) or not a UUID (→ 401)
    """
    if not x_user_id:
        raise AuthenticationError()
    try:
        return UUID(x_user_id)
    except ValueError:
        logger.warning("Rejected malformed %s header", USER_ID_HEADER)
        raise AuthenticationError(message="Invalid or expired token")

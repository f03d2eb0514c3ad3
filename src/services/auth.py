"""Resolve the current user from a Supabase Auth access token."""

from typing import Mapping, Optional

from src.services.supabase_client import SupabaseClient
from src.utils.errors import AuthenticationError
from src.utils.logging import get_structured_logger, mask_user_id

logger = get_structured_logger(__name__)


def extract_bearer_token(headers: Optional[Mapping[str, str]]) -> str:
    """Pull the access token out of an Authorization header (any header case)."""
    for name, value in (headers or {}).items():
        if name.lower() == "authorization" and value:
            scheme, _, token = value.partition(" ")
            if scheme.lower() == "bearer" and token.strip():
                return token.strip()
    raise AuthenticationError("Missing bearer token")


async def resolve_user_id(access_token: str) -> str:
    """
    Ask the identity provider who owns ``access_token``.

    Raises AuthenticationError when the token is missing, invalid or expired.
    """
    if not access_token:
        raise AuthenticationError("User not authenticated")

    async with SupabaseClient() as client:
        try:
            response = client.auth.get_user(access_token)
        except Exception as e:
            logger.warning("Access token rejected", error=str(e))
            raise AuthenticationError("User not authenticated") from e

    user = getattr(response, "user", None) if response else None
    if user is None or not getattr(user, "id", None):
        raise AuthenticationError("User not authenticated")

    user_id = str(user.id)
    logger.debug("Resolved user from access token", user_id=mask_user_id(user_id))
    return user_id

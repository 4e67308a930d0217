"""Session authentication for the task API.

The OAuth sign-in flow lives outside this service; it hands back a signed
token from :func:`issue_session_token`, which clients send either as the
``session`` cookie or as an ``Authorization: Bearer`` header.
"""

import logging

from fastapi import HTTPException, Request, status
from itsdangerous import BadSignature, SignatureExpired, URLSafeTimedSerializer

from tracker.core.config import constants, settings


logger = logging.getLogger(__name__)

serializer = URLSafeTimedSerializer(str(settings.secret_key), salt=constants.SESSION_SALT)


def issue_session_token(owner_id: str) -> str:
    """Sign a session token for an authenticated owner."""
    return serializer.dumps({"owner_id": owner_id})


def _read_token(request: Request) -> str | None:
    token = request.cookies.get(constants.SESSION_COOKIE_NAME)
    if token:
        return token

    header = request.headers.get("Authorization", "")
    scheme, _, credentials = header.partition(" ")
    if scheme.lower() == "bearer" and credentials:
        return credentials.strip()
    return None


def _unauthorized() -> HTTPException:
    return HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Unauthorized")


async def get_owner_id(request: Request) -> str:
    """Resolve the owner for the current request or reject it with 401."""
    token = _read_token(request)
    if not token:
        logger.warning("auth_missing_session", extra={"path": request.url.path})
        raise _unauthorized()

    try:
        session_data = serializer.loads(token, max_age=settings.session_max_age_seconds)
    except (BadSignature, SignatureExpired) as err:
        logger.warning("auth_tampered_or_expired", extra={"path": request.url.path})
        raise _unauthorized() from err

    owner_id = session_data.get("owner_id") if isinstance(session_data, dict) else None
    if not owner_id:
        logger.warning("auth_invalid_session", extra={"path": request.url.path})
        raise _unauthorized()
    return owner_id

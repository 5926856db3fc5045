"""Acting user resolution.

Authentication happens upstream; the gateway forwards the user id in a
header (USER_ID_HEADER, default X-User-ID). Requests without it act as the
configured system user.
"""

from fastapi import Request

from app.core.config import get_settings


def get_current_user_id(request: Request) -> str:
    settings = get_settings()
    user_id = request.headers.get(settings.user_id_header, "").strip()
    return user_id or settings.system_user_id

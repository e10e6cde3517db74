"""Local user profiles mirrored from identity-provider claims."""

import copy
import logging
from datetime import datetime, timezone

from fastapi import HTTPException

from dragon_api.auth.dependencies import CurrentUser
from dragon_api.db.models import DEFAULT_AVATAR, DEFAULT_PREFERENCES
from dragon_api.users import repository

logger = logging.getLogger(__name__)


class UserNotFoundError(HTTPException):
    def __init__(self):
        super().__init__(status_code=404, detail="User not found")


async def sync_user(user: CurrentUser) -> dict:
    """Create the profile on first login, refresh identity fields on later ones.

    Email, display name and last login always follow the token. Avatar and
    preferences are only set when the record is created.
    """
    fields = {
        "email": user.email,
        "display_name": user.display_name,
        "last_login_at": datetime.now(timezone.utc).isoformat(),
    }
    profile = await repository.update_by_subject(user.id, fields)
    if profile is None:
        logger.info("Creating profile for %s", user.id)
        profile = await repository.create(
            {
                "keycloak_id": user.id,
                "avatar": DEFAULT_AVATAR,
                "preferences": copy.deepcopy(DEFAULT_PREFERENCES),
                **fields,
            }
        )
    if profile is None:
        raise HTTPException(status_code=500, detail="Failed to sync user profile")
    return profile


async def get_profile(subject: str) -> dict:
    profile = await repository.get_by_subject(subject)
    if profile is None:
        raise UserNotFoundError()
    return profile

"""FastAPI dependency resolving the calling user.

X-User-Id is trusted as-is: nothing here verifies a token, so any client
that can reach this service can act as any user, admins included. Deploy
it only behind a gateway that verifies the caller's token, strips any
client-supplied X-User-Id and sets the header itself. Here the user must
only exist and be active.
"""

from fastapi import Depends, Header, HTTPException, status
from loguru import logger
from sqlalchemy import select
from sqlalchemy.orm import Session

from workbot.db.models import User
from workbot.db.session import get_db
from workbot.plans.types import Caller


def get_current_caller(
    x_user_id: str | None = Header(default=None),
    session: Session = Depends(get_db),
) -> Caller:
    """Load the caller identified by the X-User-Id header.

    Raises:
        HTTPException: 401 if the header is missing or the user is unknown
        HTTPException: 403 if the user account is inactive
    """
    if not x_user_id:
        logger.warning("Auth failed: missing X-User-Id header")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated.",
        )

    user = session.execute(select(User).where(User.id == x_user_id)).scalar_one_or_none()
    if user is None:
        logger.warning(f"Auth failed: User not found user_id={x_user_id}")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="User not found",
        )
    if not user.is_active:
        logger.warning(f"Auth failed: Inactive user user_id={x_user_id}")
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Account inactive.",
        )

    return Caller(user_id=user.id, name=user.name, is_admin=user.is_admin)

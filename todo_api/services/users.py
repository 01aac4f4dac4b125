import logging
from typing import Optional

from sqlmodel import Session, select

from todo_api.models.user import User, utc_now

logger = logging.getLogger(__name__)


def get_user_by_email(db: Session, email: str) -> Optional[User]:
    return db.exec(select(User).where(User.email == email)).first()


def upsert_oauth_user(
    db: Session,
    provider: str,
    provider_user_id: str,
    email: str,
    username: str,
) -> User:
    """
    Return the user for an external identity, creating it on first login.

    The provider's identifier is the lookup key and never changes; the email
    and username are refreshed from the provider on every subsequent login. An
    email already held by another user is not taken over.
    """
    user = db.exec(
        select(User).where(User.provider_user_id == provider_user_id)
    ).first()

    if user is None:
        user = User(
            email=email,
            username=username or email,
            provider_user_id=provider_user_id,
            provider=provider,
        )
        db.add(user)
        db.commit()
        db.refresh(user)
        logger.info("Created user %s for %s account", user.id, provider)
        return user

    changed = False
    if email and user.email != email:
        holder = get_user_by_email(db, email)
        if holder is not None and holder.id != user.id:
            # Email is unique; keep the stored one until the other account lets it go
            logger.warning(
                "Not refreshing email of user %s: address belongs to user %s", user.id, holder.id
            )
        else:
            user.email = email
            changed = True
    if username and user.username != username:
        user.username = username
        changed = True
    if changed:
        user.updated_at = utc_now()
        db.add(user)
        db.commit()
        db.refresh(user)
    return user

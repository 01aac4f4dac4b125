"""
Ownership Guard Module

Every item must keep at least one owner. The check lives in the database, as
triggers on user_roles, so it runs inside the same transaction as the DELETE or
UPDATE that would break it, whichever code path issues the statement.

Owner rows may only vanish once their item row is gone, which is what happens
when an item is deleted and the foreign key cascade removes its assignments.
"""
import logging
from contextlib import contextmanager
from typing import Iterator

from sqlalchemy import DDL, event
from sqlalchemy.exc import DBAPIError
from sqlmodel import Session

from todo_api.core.exceptions import LastOwnerViolation
from todo_api.models.role import UserRole

logger = logging.getLogger(__name__)

LAST_OWNER_MESSAGE = "last owner of item cannot be removed"

_SQLITE_DELETE_TRIGGER = f"""
CREATE TRIGGER IF NOT EXISTS prevent_remove_last_owner
BEFORE DELETE ON user_roles
FOR EACH ROW
WHEN OLD.role_id = (SELECT role_id FROM roles WHERE name = 'owner')
    AND EXISTS (SELECT 1 FROM items WHERE id = OLD.item_id)
    AND NOT EXISTS (
        SELECT 1 FROM user_roles ur
        WHERE ur.item_id = OLD.item_id
          AND ur.user_id != OLD.user_id
          AND ur.role_id = OLD.role_id
    )
BEGIN
    SELECT RAISE(ABORT, '{LAST_OWNER_MESSAGE}');
END
"""

_SQLITE_UPDATE_TRIGGER = f"""
CREATE TRIGGER IF NOT EXISTS prevent_demote_last_owner
BEFORE UPDATE OF role_id ON user_roles
FOR EACH ROW
WHEN OLD.role_id = (SELECT role_id FROM roles WHERE name = 'owner')
    AND NEW.role_id != OLD.role_id
    AND NOT EXISTS (
        SELECT 1 FROM user_roles ur
        WHERE ur.item_id = OLD.item_id
          AND ur.user_id != OLD.user_id
          AND ur.role_id = OLD.role_id
    )
BEGIN
    SELECT RAISE(ABORT, '{LAST_OWNER_MESSAGE}');
END
"""

# The item row lock serializes concurrent removals of different owners of the
# same item; each statement in the function then sees the other's commit.
_POSTGRES_FUNCTION = f"""
CREATE OR REPLACE FUNCTION ensure_item_owner()
RETURNS TRIGGER AS $$
DECLARE
    owner_role_id INT;
BEGIN
    SELECT role_id INTO owner_role_id FROM roles WHERE name = 'owner';

    IF OLD.role_id IS DISTINCT FROM owner_role_id THEN
        IF TG_OP = 'DELETE' THEN RETURN OLD; END IF;
        RETURN NEW;
    END IF;
    IF TG_OP = 'UPDATE' AND NEW.role_id = owner_role_id THEN
        RETURN NEW;
    END IF;

    PERFORM 1 FROM items WHERE id = OLD.item_id FOR UPDATE;
    IF NOT FOUND THEN
        -- item is being deleted
        RETURN OLD;
    END IF;

    IF NOT EXISTS (
        SELECT 1 FROM user_roles
        WHERE item_id = OLD.item_id
          AND user_id <> OLD.user_id
          AND role_id = owner_role_id
    ) THEN
        RAISE EXCEPTION '{LAST_OWNER_MESSAGE}' USING ERRCODE = 'check_violation';
    END IF;

    IF TG_OP = 'DELETE' THEN RETURN OLD; END IF;
    RETURN NEW;
END;
$$ LANGUAGE plpgsql
"""

_POSTGRES_TRIGGERS = [
    "DROP TRIGGER IF EXISTS prevent_remove_last_owner ON user_roles",
    """
    CREATE TRIGGER prevent_remove_last_owner
    BEFORE DELETE ON user_roles
    FOR EACH ROW
    EXECUTE FUNCTION ensure_item_owner()
    """,
    "DROP TRIGGER IF EXISTS prevent_demote_last_owner ON user_roles",
    """
    CREATE TRIGGER prevent_demote_last_owner
    BEFORE UPDATE OF role_id ON user_roles
    FOR EACH ROW
    EXECUTE FUNCTION ensure_item_owner()
    """,
]


# MySQL does not fire triggers for foreign key cascades, so deleting an item
# never reaches these. Locking reads see the latest committed owner rows.
_MYSQL_TRIGGER_BODY = f"""
BEGIN
    DECLARE other_owners INT DEFAULT 0;
    DECLARE owner_role_id INT;
    DECLARE locked_item INT;
    SELECT role_id INTO owner_role_id FROM roles WHERE name = 'owner';
    IF OLD.role_id = owner_role_id {{extra_condition}} THEN
        SELECT id INTO locked_item FROM items WHERE id = OLD.item_id FOR UPDATE;
        SELECT COUNT(*) INTO other_owners FROM user_roles
        WHERE item_id = OLD.item_id AND user_id <> OLD.user_id AND role_id = owner_role_id
        FOR UPDATE;
        IF other_owners = 0 THEN
            SIGNAL SQLSTATE '45000' SET MESSAGE_TEXT = '{LAST_OWNER_MESSAGE}';
        END IF;
    END IF;
END
"""

_MYSQL_TRIGGERS = [
    "DROP TRIGGER IF EXISTS prevent_remove_last_owner",
    "CREATE TRIGGER prevent_remove_last_owner BEFORE DELETE ON user_roles FOR EACH ROW"
    + _MYSQL_TRIGGER_BODY.replace("{extra_condition}", ""),
    "DROP TRIGGER IF EXISTS prevent_demote_last_owner",
    "CREATE TRIGGER prevent_demote_last_owner BEFORE UPDATE ON user_roles FOR EACH ROW"
    + _MYSQL_TRIGGER_BODY.replace("{extra_condition}", "AND NEW.role_id <> OLD.role_id"),
]


def install_guards() -> None:
    """Attach the trigger DDL to the user_roles table's after_create event."""
    table = UserRole.__table__
    for statement in (_SQLITE_DELETE_TRIGGER, _SQLITE_UPDATE_TRIGGER):
        event.listen(table, "after_create", DDL(statement).execute_if(dialect="sqlite"))

    event.listen(table, "after_create", DDL(_POSTGRES_FUNCTION).execute_if(dialect="postgresql"))
    for statement in _POSTGRES_TRIGGERS:
        event.listen(table, "after_create", DDL(statement).execute_if(dialect="postgresql"))

    for statement in _MYSQL_TRIGGERS:
        event.listen(table, "after_create", DDL(statement).execute_if(dialect="mysql"))


def is_last_owner_error(exc: DBAPIError) -> bool:
    return LAST_OWNER_MESSAGE in str(exc.orig)


@contextmanager
def guard_last_owner(db: Session) -> Iterator[None]:
    """
    Translate the trigger's rejection into LastOwnerViolation.

    Wrap the flush/commit that deletes or demotes an assignment. The session is
    rolled back before the violation propagates.
    """
    try:
        yield
    except DBAPIError as exc:
        db.rollback()
        if is_last_owner_error(exc):
            logger.warning("Rejected removal of the last owner: %s", exc.orig)
            raise LastOwnerViolation("An item must keep at least one owner") from exc
        raise


install_guards()

"""Access policy engine — who may do what to which record.

Learn: This is a pure decision function. It never touches the database:
callers load whatever facts the rules need (the note's owner, the target
account's role, the caller's banned flag) and ask evaluate() for a
Decision before any write or scoped read happens.

Rules are evaluated in order and the first match wins:

1. Admins may create/read/update/delete/list notes and list accounts.
   They may NOT read a user's content through the account surface —
   admins manage accounts, not content.
2. A non-admin acting on a note owned by someone else is forbidden, for
   every operation. Non-admins get no account-management operations.
3. A banned non-admin cannot create notes for themselves.
4. Nobody can ban or unban an admin account.
5. An admin cannot ban themselves. (Unbanning yourself is not covered by
   this rule; since every admin is also protected by rule 4, the gap is
   unreachable today.)
6. Everything else is allowed.
"""

import enum
import uuid
from dataclasses import dataclass
from typing import Optional, Union

from notekeeper.db.models import Role
from notekeeper.errors import Forbidden, Unauthenticated

Id = Union[str, uuid.UUID]


class Operation(str, enum.Enum):
    CREATE = "create"
    READ = "read"
    UPDATE = "update"
    DELETE = "delete"
    LIST = "list"
    BAN = "ban"
    UNBAN = "unban"


class Resource(str, enum.Enum):
    NOTE = "note"
    USER_ACCOUNT = "user_account"


class Effect(str, enum.Enum):
    ALLOWED = "allowed"
    FORBIDDEN = "forbidden"
    UNAUTHENTICATED = "unauthenticated"


@dataclass(frozen=True)
class Caller:
    """The identity making the current request."""

    user_id: str
    role: str
    banned: bool = False

    @property
    def is_admin(self) -> bool:
        return self.role == Role.ADMIN.value

    def owns(self, owner_id: Optional[Id]) -> bool:
        return owner_id is not None and str(owner_id) == self.user_id


@dataclass(frozen=True)
class Decision:
    effect: Effect
    reason: str = ""

    @property
    def allowed(self) -> bool:
        return self.effect is Effect.ALLOWED


ALLOW = Decision(Effect.ALLOWED)

_ADMIN_NOTE_OPS = {
    Operation.CREATE,
    Operation.READ,
    Operation.UPDATE,
    Operation.DELETE,
    Operation.LIST,
}


def _forbid(reason: str = "Forbidden") -> Decision:
    return Decision(Effect.FORBIDDEN, reason)


def evaluate(
    caller: Optional[Caller],
    operation: Operation,
    resource: Resource,
    owner_id: Optional[Id] = None,
    target_role: Optional[str] = None,
) -> Decision:
    """Decide whether caller may perform operation on resource.

    owner_id is the note's owner for notes, or the target account id for
    account operations. target_role is the target account's role.
    """
    if caller is None:
        return Decision(Effect.UNAUTHENTICATED, "Unauthorized")

    # Rule 1: admin powers
    if caller.is_admin:
        if resource is Resource.NOTE and operation in _ADMIN_NOTE_OPS:
            return ALLOW
        if resource is Resource.USER_ACCOUNT and operation is Operation.LIST:
            return ALLOW
        if resource is Resource.USER_ACCOUNT and operation is Operation.READ:
            return _forbid("Admins manage accounts, not content")

    # Rule 2: ownership
    if not caller.is_admin:
        if resource is Resource.USER_ACCOUNT:
            return _forbid()
        if not caller.owns(owner_id):
            return _forbid()

    # Rule 3: banned users cannot write new notes
    if (
        resource is Resource.NOTE
        and operation is Operation.CREATE
        and not caller.is_admin
        and caller.banned
    ):
        return _forbid("Banned users cannot create notes")

    if resource is Resource.USER_ACCOUNT and operation in (Operation.BAN, Operation.UNBAN):
        # Rule 4
        if target_role == Role.ADMIN.value:
            verb = "ban" if operation is Operation.BAN else "unban"
            return _forbid(f"Cannot {verb} admin users")
        # Rule 5
        if operation is Operation.BAN and caller.owns(owner_id):
            return _forbid("Cannot ban yourself")

    return ALLOW


def authorize(
    caller: Optional[Caller],
    operation: Operation,
    resource: Resource,
    owner_id: Optional[Id] = None,
    target_role: Optional[str] = None,
) -> None:
    """Evaluate and raise the matching error unless the decision allows."""
    decision = evaluate(caller, operation, resource, owner_id, target_role)
    if decision.effect is Effect.UNAUTHENTICATED:
        raise Unauthenticated(decision.reason)
    if decision.effect is Effect.FORBIDDEN:
        raise Forbidden(decision.reason)

"""Component custom ids: one frozen dataclass per interaction kind.

Every button and select menu the bot sends carries a ``custom_id`` built by
``encode()`` on one of these variants. ``parse_custom_id`` is the inverse and
is the only place that splits id strings. Fields are joined with ``_`` and
never escaped, so session ids must not contain underscores (they are uuid
hex strings) and roles/actions come from closed vocabularies.
"""

from __future__ import annotations

from dataclasses import dataclass

from pvpplanner.models.constants import STATUS_KEYWORDS

CONTROL_ACTIONS: frozenset[str] = frozenset({"role", "status", "info"})


class UnknownComponentId(ValueError):
    """The id's prefix does not belong to any interaction kind."""


class MalformedComponentId(ValueError):
    """The prefix is known but the fields are the wrong shape."""


@dataclass(frozen=True)
class ManageSignup:
    session_id: str

    def encode(self) -> str:
        return f"manage_signup_{self.session_id}"


@dataclass(frozen=True)
class UserStatus:
    keyword: str
    session_id: str
    user_id: str

    @property
    def status(self) -> str:
        return STATUS_KEYWORDS[self.keyword]

    def encode(self) -> str:
        return f"user_{self.keyword}_{self.session_id}_{self.user_id}"


@dataclass(frozen=True)
class UserRole:
    role: str
    session_id: str
    user_id: str

    def encode(self) -> str:
        return f"userrole_{self.role}_{self.session_id}_{self.user_id}"


@dataclass(frozen=True)
class UserUpdate:
    session_id: str
    user_id: str

    def encode(self) -> str:
        return f"userupdate_{self.session_id}_{self.user_id}"


@dataclass(frozen=True)
class UserNoChanges:
    session_id: str
    user_id: str

    def encode(self) -> str:
        return f"usernochanges_{self.session_id}_{self.user_id}"


@dataclass(frozen=True)
class ControlAction:
    action: str
    session_id: str
    user_id: str
    message_id: str

    def encode(self) -> str:
        return f"control_{self.action}_{self.session_id}_{self.user_id}_{self.message_id}"


@dataclass(frozen=True)
class ClassSelect:
    session_id: str
    user_id: str

    def encode(self) -> str:
        return f"classselect_{self.session_id}_{self.user_id}"


@dataclass(frozen=True)
class SpecSelect:
    session_id: str
    user_id: str

    def encode(self) -> str:
        return f"specselect_{self.session_id}_{self.user_id}"


ComponentId = (
    ManageSignup
    | UserStatus
    | UserRole
    | UserUpdate
    | UserNoChanges
    | ControlAction
    | ClassSelect
    | SpecSelect
)


def owner_id(component: ComponentId) -> str | None:
    """The user id embedded in *component*, or None for session-wide ids."""
    return getattr(component, "user_id", None)


def _fields(custom_id: str, prefix: str, count: int) -> list[str]:
    parts = custom_id[len(prefix) :].split("_")
    if len(parts) != count or not all(parts):
        raise MalformedComponentId(
            f"{custom_id!r}: expected {count} fields after {prefix!r}, got {len(parts)}"
        )
    return parts


def parse_custom_id(custom_id: str) -> ComponentId:
    """Decode a component custom id into its variant.

    Raises UnknownComponentId when no prefix matches and MalformedComponentId
    when the prefix matches but the fields do not fit.
    """
    if custom_id.startswith("manage_signup_"):
        (session_id,) = _fields(custom_id, "manage_signup_", 1)
        return ManageSignup(session_id)

    if custom_id.startswith("user_"):
        keyword, session_id, user_id = _fields(custom_id, "user_", 3)
        if keyword not in STATUS_KEYWORDS:
            raise MalformedComponentId(f"{custom_id!r}: unknown status {keyword!r}")
        return UserStatus(keyword, session_id, user_id)

    if custom_id.startswith("userrole_"):
        role, session_id, user_id = _fields(custom_id, "userrole_", 3)
        return UserRole(role, session_id, user_id)

    if custom_id.startswith("userupdate_"):
        session_id, user_id = _fields(custom_id, "userupdate_", 2)
        return UserUpdate(session_id, user_id)

    if custom_id.startswith("usernochanges_"):
        session_id, user_id = _fields(custom_id, "usernochanges_", 2)
        return UserNoChanges(session_id, user_id)

    if custom_id.startswith("control_"):
        action, session_id, user_id, message_id = _fields(custom_id, "control_", 4)
        if action not in CONTROL_ACTIONS:
            raise MalformedComponentId(f"{custom_id!r}: unknown action {action!r}")
        return ControlAction(action, session_id, user_id, message_id)

    if custom_id.startswith("classselect_"):
        session_id, user_id = _fields(custom_id, "classselect_", 2)
        return ClassSelect(session_id, user_id)

    if custom_id.startswith("specselect_"):
        session_id, user_id = _fields(custom_id, "specselect_", 2)
        return SpecSelect(session_id, user_id)

    raise UnknownComponentId(custom_id)

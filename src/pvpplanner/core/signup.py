"""Pure signup transitions. No I/O: everything here is unit-testable.

The per-user state machine is: unset -> any status, any status -> any other
status, and a repeated click on the current status is a no-op. Role fields
are reconciled against the session category whenever the user lands on a
roster status (attending, late, backup).
"""

from __future__ import annotations

from pvpplanner.models.constants import (
    ATTENDING,
    CATEGORY_ROLES,
    NOT_ATTENDING,
    ROLE_SPECS,
    ROSTER_STATUSES,
    WOW_CATEGORIES,
)
from pvpplanner.models.session import Gamer, PreferenceSlot, Session, signup_for


class InvalidSelection(ValueError):
    """A role, class or spec that the session's category does not allow."""


def allowed_roles(category: str) -> tuple[str, ...]:
    return CATEGORY_ROLES.get(category, ())


def classes_for_role(role: str) -> list[str]:
    return list(ROLE_SPECS.get(role, {}))


def specs_for(role: str, wow_class: str) -> list[str]:
    return list(ROLE_SPECS.get(role, {}).get(wow_class, ()))


def is_complete(entry: Gamer, category: str) -> bool:
    """Whether *entry* has every field its category needs."""
    return signup_for(entry, category).is_complete


def _seed_from_preference(entry: Gamer, category: str, pref: PreferenceSlot) -> Gamer:
    """Fill empty role/class/spec from *pref*, keeping only compatible values."""
    updates: dict[str, str] = {}
    role = entry.role
    if not role and pref.role in allowed_roles(category):
        role = updates["role"] = pref.role

    if category in WOW_CATEGORIES and role:
        wow_class = entry.wow_class
        if not wow_class and pref.wow_class in ROLE_SPECS.get(role, {}):
            wow_class = updates["wow_class"] = pref.wow_class
        if (
            not entry.wow_spec
            and wow_class
            and pref.wow_spec in specs_for(role, wow_class)
        ):
            updates["wow_spec"] = pref.wow_spec

    return entry.model_copy(update=updates) if updates else entry


def _reconcile_role(entry: Gamer, category: str) -> Gamer:
    """Drop a role (and dependent fields) the category does not allow."""
    if category == "custom":
        return entry.model_copy(update={"role": "participant", "wow_class": "", "wow_spec": ""})
    if entry.role and entry.role not in allowed_roles(category):
        return entry.model_copy(update={"role": "", "wow_class": "", "wow_spec": ""})
    if category not in WOW_CATEGORIES and (entry.wow_class or entry.wow_spec):
        return entry.model_copy(update={"wow_class": "", "wow_spec": ""})
    return entry


def transition_entry(
    entry: Gamer | None,
    target: str,
    category: str,
    *,
    user_id: str,
    username: str,
    preference: PreferenceSlot | None = None,
) -> Gamer:
    """Apply a status click to one user's entry and return the new entry.

    The caller checks for the same-status no-op before calling this.
    """
    if entry is None:
        new = Gamer(user_id=user_id, username=username, status=target)
    else:
        new = entry.model_copy(update={"status": target, "reason": "", "username": username})

    if target == NOT_ATTENDING:
        return new

    if target in ROSTER_STATUSES:
        new = _reconcile_role(new, category)

    if preference is not None:
        new = _seed_from_preference(new, category, preference)
    return new


def is_same_status(entry: Gamer | None, target: str) -> bool:
    return entry is not None and entry.status == target


def role_capacity_reached(session: Session, role: str, user_id: str) -> bool:
    """True when every slot for *role* is taken by attending users other than *user_id*."""
    limit = session.role_requirements().get(role)
    if limit is None:
        return False
    taken = sum(
        1
        for g in session.gamers
        if g.role == role and g.status == ATTENDING and g.user_id != user_id
    )
    return taken >= limit


def apply_role_selection(entry: Gamer, role: str, category: str) -> Gamer:
    """Set *role*, clearing a class or spec that can no longer fill it.

    A kept class with only one spec for the new role gets that spec.
    """
    if role not in allowed_roles(category):
        raise InvalidSelection(f"{role!r} is not a role for {category} sessions")

    updates = {"role": role}
    if category in WOW_CATEGORIES:
        specs = specs_for(role, entry.wow_class)
        if entry.wow_class and not specs:
            updates["wow_class"] = ""
            updates["wow_spec"] = ""
        elif len(specs) == 1:
            updates["wow_spec"] = specs[0]
        elif entry.wow_spec and entry.wow_spec not in specs:
            updates["wow_spec"] = ""
    else:
        updates["wow_class"] = ""
        updates["wow_spec"] = ""
    return entry.model_copy(update=updates)


def apply_class_selection(entry: Gamer, wow_class: str, category: str) -> Gamer:
    """Set *wow_class*; auto-pick the spec when only one fits the role."""
    if category not in WOW_CATEGORIES:
        raise InvalidSelection(f"{category} sessions have no classes")
    if wow_class not in ROLE_SPECS.get(entry.role, {}):
        raise InvalidSelection(f"{wow_class!r} cannot play {entry.role or 'no role'}")

    specs = specs_for(entry.role, wow_class)
    if len(specs) == 1:
        spec = specs[0]
    elif entry.wow_spec in specs and entry.wow_class == wow_class:
        spec = entry.wow_spec
    else:
        spec = ""
    return entry.model_copy(update={"wow_class": wow_class, "wow_spec": spec})


def apply_spec_selection(entry: Gamer, wow_spec: str, category: str) -> Gamer:
    if category not in WOW_CATEGORIES:
        raise InvalidSelection(f"{category} sessions have no specs")
    if wow_spec not in specs_for(entry.role, entry.wow_class):
        raise InvalidSelection(f"{wow_spec!r} is not a {entry.role} spec for {entry.wow_class}")
    return entry.model_copy(update={"wow_spec": wow_spec})

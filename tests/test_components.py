"""Tests for component builders and the control panel.

discord.ui.View needs a running event loop, so these tests are async.
"""

from unittest.mock import patch

import discord
from session_factories import gamer, make_session

from pvpplanner.core.custom_ids import parse_custom_id
from pvpplanner.discord.components import (
    CONTROL_PANEL_ERROR,
    ClassSelectView,
    RoleButtonsView,
    SessionButtonsView,
    SpecSelectView,
    StatusButtonsView,
    build_control_panel,
    selection_confirmation,
)


def _custom_ids(view: discord.ui.View) -> list[str]:
    return [item.custom_id for item in view.children]


class TestButtons:
    async def test_session_buttons_single_entry_point(self) -> None:
        view = SessionButtonsView("abc")
        assert _custom_ids(view) == ["manage_signup_abc"]
        assert view.timeout is None

    async def test_status_buttons(self) -> None:
        view = StatusButtonsView("abc", "42")
        assert _custom_ids(view) == [
            "user_letsgo_abc_42",
            "user_late_abc_42",
            "user_tentative_abc_42",
            "user_backup_abc_42",
            "user_cantmakeit_abc_42",
        ]

    async def test_status_buttons_with_no_change(self) -> None:
        view = StatusButtonsView("abc", "42", include_no_change=True)
        assert _custom_ids(view)[-1] == "usernochanges_abc_42"

    async def test_role_buttons_follow_category(self) -> None:
        assert _custom_ids(RoleButtonsView("abc", "42", "pvp")) == [
            "userrole_tank_abc_42",
            "userrole_healer_abc_42",
            "userrole_dps_abc_42",
        ]
        assert _custom_ids(RoleButtonsView("abc", "42", "dnd")) == [
            "userrole_dm_abc_42",
            "userrole_player_abc_42",
        ]
        custom = RoleButtonsView("abc", "42", "custom")
        assert _custom_ids(custom) == ["userrole_participant_abc_42"]

    async def test_role_buttons_keep_selection(self) -> None:
        view = RoleButtonsView("abc", "42", "pvp", include_keep=True)
        assert _custom_ids(view)[-1] == "userupdate_abc_42"

    async def test_every_id_decodes(self) -> None:
        views = [
            SessionButtonsView("abc"),
            StatusButtonsView("abc", "42", include_no_change=True),
            RoleButtonsView("abc", "42", "pve", include_keep=True),
            ClassSelectView("abc", "42", "healer"),
            SpecSelectView("abc", "42", "healer", "priest"),
        ]
        for view in views:
            for custom_id in _custom_ids(view):
                parse_custom_id(custom_id)


class TestMenus:
    async def test_class_menu_filtered_by_role(self) -> None:
        select = ClassSelectView("abc", "42", "tank").children[0]
        assert select.custom_id == "classselect_abc_42"
        values = [o.value for o in select.options]
        assert "warrior" in values
        assert "mage" not in values

    async def test_spec_menu_filtered_by_role_and_class(self) -> None:
        select = SpecSelectView("abc", "42", "healer", "priest").children[0]
        assert select.custom_id == "specselect_abc_42"
        assert [o.value for o in select.options] == ["discipline", "holy"]


class TestControlPanel:
    async def test_shows_current_signup(self) -> None:
        session = make_session(
            "pvp",
            [gamer("42", status="attending", role="tank", wow_class="warrior", wow_spec="protection")],
        )
        panel = build_control_panel(session, "42", 99)
        assert "**Role:** Tank" in panel.content
        assert "**Class:** Warrior" in panel.content
        assert "**Spec:** Protection" in panel.content
        assert _custom_ids(panel.view) == [
            "control_role_abc123_42_99",
            "control_status_abc123_42_99",
            "control_info_abc123_42_99",
        ]
        indicator = panel.view.children[2]
        assert indicator.disabled
        assert indicator.label == "✅ Attending"

    async def test_non_wow_panel_hides_class(self) -> None:
        session = make_session("dnd", [gamer("42", status="late", role="player")])
        panel = build_control_panel(session, "42")
        assert "**Class:**" not in panel.content
        assert panel.view.children[2].label == "⏰ Running Late"

    async def test_not_signed_up(self) -> None:
        panel = build_control_panel(make_session("pvp"), "42")
        assert "Not Signed Up" in panel.content

    async def test_falls_back_to_text_on_error(self) -> None:
        session = make_session("pvp", [gamer("42", status="attending")])
        with patch(
            "pvpplanner.discord.components.control_panel_content",
            side_effect=RuntimeError("boom"),
        ):
            panel = build_control_panel(session, "42")
        assert panel.content == CONTROL_PANEL_ERROR
        assert panel.view is None


class TestSelectionConfirmation:
    async def test_confirmation_text(self) -> None:
        session = make_session(
            "pvp",
            [gamer("42", status="attending", role="healer", wow_class="shaman", wow_spec="restoration")],
        )
        assert selection_confirmation(session, "42") == (
            "✅ Got it! You're still signed up as a Restoration Shaman HEALER. No changes made."
        )

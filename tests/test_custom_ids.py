"""Tests for component custom id encoding and decoding."""

import pytest

from pvpplanner.core.custom_ids import (
    ClassSelect,
    ControlAction,
    MalformedComponentId,
    ManageSignup,
    SpecSelect,
    UnknownComponentId,
    UserNoChanges,
    UserRole,
    UserStatus,
    UserUpdate,
    owner_id,
    parse_custom_id,
)


class TestParse:
    @pytest.mark.parametrize(
        ("custom_id", "expected"),
        [
            ("manage_signup_abc", ManageSignup("abc")),
            ("user_letsgo_abc_42", UserStatus("letsgo", "abc", "42")),
            ("user_cantmakeit_abc_42", UserStatus("cantmakeit", "abc", "42")),
            ("userrole_tank_abc_42", UserRole("tank", "abc", "42")),
            ("userupdate_abc_42", UserUpdate("abc", "42")),
            ("usernochanges_abc_42", UserNoChanges("abc", "42")),
            ("control_info_abc_42_99", ControlAction("info", "abc", "42", "99")),
            ("classselect_abc_42", ClassSelect("abc", "42")),
            ("specselect_abc_42", SpecSelect("abc", "42")),
        ],
    )
    def test_decodes_each_kind(self, custom_id: str, expected) -> None:
        assert parse_custom_id(custom_id) == expected
        assert expected.encode() == custom_id

    def test_status_keyword_maps_to_status(self) -> None:
        assert parse_custom_id("user_letsgo_abc_42").status == "attending"
        assert parse_custom_id("user_cantmakeit_abc_42").status == "not attending"

    def test_role_id_with_missing_field_is_malformed(self) -> None:
        with pytest.raises(MalformedComponentId):
            parse_custom_id("userrole_tank_abc")

    def test_extra_field_is_malformed(self) -> None:
        with pytest.raises(MalformedComponentId):
            parse_custom_id("classselect_abc_42_pvp")

    def test_empty_field_is_malformed(self) -> None:
        with pytest.raises(MalformedComponentId):
            parse_custom_id("userupdate__42")

    def test_unknown_status_keyword_is_malformed(self) -> None:
        with pytest.raises(MalformedComponentId):
            parse_custom_id("user_maybe_abc_42")

    def test_unknown_control_action_is_malformed(self) -> None:
        with pytest.raises(MalformedComponentId):
            parse_custom_id("control_delete_abc_42_99")

    def test_unknown_prefix(self) -> None:
        with pytest.raises(UnknownComponentId):
            parse_custom_id("vote_yes_abc")


class TestOwner:
    def test_session_button_has_no_owner(self) -> None:
        assert owner_id(ManageSignup("abc")) is None

    def test_user_scoped_ids_carry_owner(self) -> None:
        assert owner_id(UserRole("dps", "abc", "42")) == "42"
        assert owner_id(ControlAction("role", "abc", "42", "1")) == "42"

"""Tests for request input validation."""

from __future__ import annotations

import pytest

from brewdeck.core.errors import ValidationError
from brewdeck.core.validation import (
    validate_action,
    validate_name,
    validate_pin_action,
    validate_query,
)


class TestValidateName:
    @pytest.mark.parametrize(
        "name",
        ["go", "node@18", "llvm@15", "python-setuptools", "c++utilities", "a.b_c", "7zip", "a" * 128],
    )
    def test_accepts_valid_names(self, name: str) -> None:
        assert validate_name(name) is None

    def test_accepts_unknown_but_wellformed_name(self) -> None:
        # brew decides whether it exists; validation only checks syntax
        validate_name("definitely-not-a-real-formula")

    def test_empty_is_required(self) -> None:
        with pytest.raises(ValidationError) as exc:
            validate_name("")
        assert exc.value.field == "name"
        assert "required" in exc.value.message

    def test_too_long_is_truncated(self) -> None:
        with pytest.raises(ValidationError) as exc:
            validate_name("a" * 129)
        assert exc.value.field == "name"
        assert "128" in exc.value.message
        assert exc.value.value == "a" * 20 + "..."
        assert len(exc.value.value) == 23

    @pytest.mark.parametrize(
        "name",
        [
            "-rf",
            "@scope",
            ".hidden",
            "wget; rm -rf /",
            "foo bar",
            "$(whoami)",
            "a|b",
            "name`id`",
            "wget\n",
            "wget/../../etc",
            "ünïcode",
        ],
    )
    def test_rejects_unsafe_names(self, name: str) -> None:
        with pytest.raises(ValidationError) as exc:
            validate_name(name)
        assert exc.value.field == "name"
        assert "invalid characters" in exc.value.message


class TestValidateAction:
    @pytest.mark.parametrize("action", ["start", "stop", "restart"])
    def test_allowed(self, action: str) -> None:
        validate_action(action)

    @pytest.mark.parametrize("action", ["kill", "", "START", "start "])
    def test_rejected_names_allowed_set(self, action: str) -> None:
        with pytest.raises(ValidationError) as exc:
            validate_action(action)
        assert exc.value.field == "action"
        assert "start, stop, restart" in exc.value.message


class TestValidatePinAction:
    @pytest.mark.parametrize("action", [None, ""])
    def test_defaults_to_pin(self, action: str | None) -> None:
        assert validate_pin_action(action) == "pin"

    def test_unpin(self) -> None:
        assert validate_pin_action("unpin") == "unpin"

    def test_rejects_other_actions(self) -> None:
        with pytest.raises(ValidationError) as exc:
            validate_pin_action("lock")
        assert exc.value.field == "action"
        assert "pin, unpin" in exc.value.message


class TestValidateQuery:
    def test_empty_is_not_an_error(self) -> None:
        validate_query("")

    def test_query_may_contain_spaces(self) -> None:
        validate_query("web server")

    def test_option_like_query_rejected(self) -> None:
        with pytest.raises(ValidationError) as exc:
            validate_query("--eval-all")
        assert exc.value.field == "query"

    def test_too_long(self) -> None:
        with pytest.raises(ValidationError) as exc:
            validate_query("q" * 129)
        assert exc.value.field == "query"
        assert exc.value.value == "q" * 20 + "..."

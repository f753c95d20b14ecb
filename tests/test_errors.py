"""Tests for the hexstorm.errors hierarchy."""

from hexstorm.errors import (
    GameNotStartedError,
    HexStormError,
    IllegalColorError,
    InvalidMoveError,
    InvalidStateError,
    NotYourTurnError,
    ProtocolError,
    UnknownSenderError,
)


def test_move_errors_share_base_and_code():
    for cls in (UnknownSenderError, GameNotStartedError, NotYourTurnError, IllegalColorError):
        err = cls("nope")
        assert isinstance(err, InvalidMoveError)
        assert isinstance(err, HexStormError)
        assert err.code == "INVALID_MOVE"


def test_reasons_are_distinct():
    reasons = {
        UnknownSenderError("x").reason,
        GameNotStartedError("x").reason,
        NotYourTurnError("x").reason,
        IllegalColorError("x").reason,
    }
    assert reasons == {"unknown_sender", "not_started", "not_your_turn", "illegal_color"}


def test_str_and_to_dict_include_context():
    err = IllegalColorError("Color is not in the palette.", color="pink", context={"player": "player1"})
    assert str(err) == "[INVALID_MOVE] Color is not in the palette. (player=player1, color=pink)"
    assert err.to_dict() == {
        "code": "INVALID_MOVE",
        "message": "Color is not in the palette.",
        "context": {"player": "player1", "color": "pink"},
    }


def test_explicit_reason_and_code_override():
    assert InvalidMoveError("x", reason="custom").reason == "custom"
    assert HexStormError("x", code="CUSTOM").code == "CUSTOM"


def test_plain_message_rendering():
    assert str(InvalidStateError("broken")) == "[INVALID_STATE] broken"
    assert ProtocolError("bad", event="chat").context == {"event": "chat"}

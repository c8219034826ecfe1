"""Tests for the bundled move providers and the reply parser."""

import random

import pytest

from uttt.errors import ProviderFailure, ReplyParseError
from uttt.game import apply_move, initial_state, is_legal_move
from uttt.providers import GAME_RULES, ProposedMove, RandomProvider, ScriptedProvider, parse_provider_reply


def test_random_provider_proposes_legal_moves():
    provider = RandomProvider(random.Random(0))
    state = initial_state()
    for _ in range(30):
        if state.is_terminal:
            break
        move = provider.propose(state, GAME_RULES)
        assert is_legal_move(state, move.board, move.cell)
        state = apply_move(state, move.board, move.cell)


def test_scripted_provider_raises_when_exhausted():
    provider = ScriptedProvider([((0, 0), (0, 0))], name="human")
    assert provider.propose(initial_state()) == ProposedMove((0, 0), (0, 0))
    with pytest.raises(ProviderFailure, match="human: script exhausted"):
        provider.propose(initial_state())
    assert provider.calls == 2


def test_scripted_provider_accepts_lists():
    provider = ScriptedProvider([([2, 1], [0, 1])])
    assert provider.propose(initial_state()) == ProposedMove((2, 1), (0, 1))


def test_parse_plain_reply():
    move = parse_provider_reply(
        '{"message": "take the center", "move": {"boardIndex": 4, "cellIndex": 0}}'
    )
    assert move == ProposedMove((1, 1), (0, 0), "take the center")


def test_parse_fenced_reply_with_surrounding_text():
    raw = (
        "Here is my move:\n"
        "```json\n"
        '{"move": {"boardIndex": 8, "cellIndex": 5}, "message": "corner"}\n'
        "```\n"
        "Good luck!"
    )
    assert parse_provider_reply(raw) == ProposedMove((2, 2), (1, 2), "corner")


@pytest.mark.parametrize(
    "raw",
    [
        "I will play the center",
        '{"move": {"boardIndex": 4, "cellIndex": 0}',
        '{"move": {"boardIndex": 9, "cellIndex": 0}, "message": "x"}',
        '{"move": {"boardIndex": 4, "cellIndex": -1}, "message": "x"}',
        '{"move": {"boardIndex": "4", "cellIndex": 0}, "message": "x"}',
        '{"move": {"boardIndex": true, "cellIndex": 0}, "message": "x"}',
        '{"move": {"boardIndex": 4, "cellIndex": 0}}',
        '{"move": [4, 0], "message": "x"}',
        "[1, 2]",
    ],
)
def test_parse_rejects_malformed_replies(raw):
    with pytest.raises(ReplyParseError):
        parse_provider_reply(raw)


def test_parse_error_is_a_provider_failure():
    with pytest.raises(ProviderFailure):
        parse_provider_reply(None)

"""Tests for the match loop."""

import random
from pathlib import Path

import pytest

from uttt.acquisition import RetryPolicy
from uttt.game import meta_outcome, replay
from uttt.match import make_provider, play_match
from uttt.providers import RandomProvider, ScriptedProvider


@pytest.mark.parametrize("seed", range(5))
def test_random_match_runs_to_completion(seed):
    rng = random.Random(seed)
    match = play_match(RandomProvider(rng, "rx"), RandomProvider(rng, "ro"))
    state = match.state
    assert state.is_terminal
    assert match.result in ("X", "O", "draw")
    assert match.result == (state.winner or "draw")
    assert meta_outcome(state.sub_outcomes) == match.result
    assert len(match.turns) == len(state.history)
    assert match.states[-1] is state
    assert [p for p, _ in match.log] == [m.player for m in state.history]
    assert match.fallbacks == 0
    assert replay(state.history) == state


def test_failing_provider_falls_back_every_turn():
    rng = random.Random(11)
    broken = ScriptedProvider([], name="broken")
    retries = []
    match = play_match(
        broken, RandomProvider(rng), RetryPolicy(max_retries=1), rng=rng,
        on_retry=lambda n, m, reason: retries.append(n),
    )
    x_turns = [t for t in match.turns if t.player == "X"]
    assert x_turns and all(t.fallback for t in x_turns)
    assert all(not t.fallback for t in match.turns if t.player == "O")
    assert match.fallbacks == len(x_turns)
    assert broken.calls == 2 * len(x_turns)
    assert retries == [1] * len(x_turns)
    assert all("broken" in annotation for p, annotation in match.log if p == "X")


def test_make_provider():
    rng = random.Random(0)
    assert isinstance(make_provider("random", None, rng), RandomProvider)
    with pytest.raises(ValueError):
        make_provider("minimax", Path("unused.pt"), rng)

import pytest

from resilient_ui.framework.recovery import RecoveryPolicy


def visible(*names):
    return lambda candidate: candidate in names


@pytest.fixture
def policy():
    return RecoveryPolicy(max_attempts=5, delay=0)


def test_attempt_numbering(policy):
    assert list(policy.attempts()) == [1, 2, 3, 4, 5]
    assert not policy.is_final(4)
    assert policy.is_final(5)


def test_invalid_budget():
    with pytest.raises(ValueError):
        RecoveryPolicy(max_attempts=0)


@pytest.mark.P0
@pytest.mark.recovery
def test_binds_to_recorded_index_when_displayed(policy):
    # another displayed element exists before the recorded index
    chosen = policy.choose(["a", "b", "c"], visible("a", "b", "c"), 3, 1, attempt=1)
    assert chosen == "b"


@pytest.mark.P0
@pytest.mark.recovery
def test_refuses_ambiguous_candidates_before_final_attempt(policy):
    candidates = ["a", "b", "c"]
    for attempt in (1, 2, 3, 4):
        assert policy.choose(candidates, visible("a", "c"), 3, 1, attempt) is None


@pytest.mark.P0
@pytest.mark.recovery
def test_final_attempt_prefers_hidden_element_at_recorded_index(policy):
    chosen = policy.choose(["a", "b", "c"], visible("a", "c"), 3, 1, attempt=5)
    assert chosen == "b"


@pytest.mark.recovery
def test_changed_count_ignores_recorded_index(policy):
    candidates = ["a", "b", "c", "d"]
    assert policy.choose(candidates, visible(*candidates), 3, 1, attempt=1) is None
    assert policy.choose(candidates, visible(*candidates), 3, 1, attempt=5) == "a"


@pytest.mark.recovery
def test_single_displayed_candidate_only_on_final_attempt(policy):
    assert policy.choose(["x"], visible("x"), 3, 1, attempt=1) is None
    assert policy.choose(["x"], visible("x"), 3, 1, attempt=5) == "x"


@pytest.mark.recovery
def test_no_candidate_never_recovers(policy):
    assert policy.choose([], visible(), 3, 1, attempt=5) is None
    assert policy.choose(["a"], visible(), 3, 1, attempt=5) is None


def test_backoff_skips_final_attempt(monkeypatch):
    sleeps = []
    monkeypatch.setattr("resilient_ui.framework.recovery.time.sleep", sleeps.append)
    policy = RecoveryPolicy(max_attempts=3, delay=0.5)
    policy.backoff(1)
    policy.backoff(3)
    assert sleeps == [0.5]

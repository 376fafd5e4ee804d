"""Tests for sitesync.schemas."""

import dataclasses

import pytest

from sitesync.schemas import Action, Job, JobResult, RunState


class TestAction:
    """Tests for the Action enum."""

    def test_values(self):
        assert [a.value for a in Action] == ["upload", "redirect", "delete", "invalidate_cache"]

    def test_is_str(self):
        assert Action.UPLOAD == "upload"
        assert Action("delete") is Action.DELETE

    @pytest.mark.parametrize("action,expected", [
        (Action.UPLOAD, True),
        (Action.REDIRECT, True),
        (Action.DELETE, True),
        (Action.INVALIDATE_CACHE, False),
    ])
    def test_is_sync(self, action, expected):
        assert action.is_sync is expected

    def test_invalid_value(self):
        with pytest.raises(ValueError):
            Action("copy")


class TestJob:
    """Tests for Job."""

    def test_is_frozen(self):
        job = Job(action=Action.UPLOAD, local="a.txt", remote="site/a.txt")

        with pytest.raises(dataclasses.FrozenInstanceError):
            job.remote = "other"

    def test_is_hashable(self):
        a = Job(action=Action.DELETE, remote="x")
        b = Job(action=Action.DELETE, remote="x")

        assert a == b
        assert len({a, b}) == 1

    @pytest.mark.parametrize("action", [Action.DELETE, Action.INVALIDATE_CACHE])
    def test_local_not_allowed(self, action):
        with pytest.raises(ValueError, match="must not have a local path"):
            Job(action=action, local="a.txt", remote="x")

    def test_to_dict(self):
        job = Job(action=Action.REDIRECT, local="old.html", remote="/new.html")

        assert job.to_dict() == {"action": "redirect", "local": "old.html", "remote": "/new.html"}


class TestJobResult:
    """Tests for JobResult."""

    def test_ok(self):
        job = Job(action=Action.DELETE, remote="x")

        assert JobResult(job=job).ok is True
        assert JobResult(job=job, error=RuntimeError("boom")).ok is False


class TestRunState:
    """Tests for RunState."""

    @pytest.mark.parametrize("state,terminal", [
        (RunState.PLANNING, False),
        (RunState.DISPATCHING, False),
        (RunState.INVALIDATING, False),
        (RunState.DONE, True),
        (RunState.ABORTED, True),
    ])
    def test_is_terminal(self, state, terminal):
        assert state.is_terminal is terminal

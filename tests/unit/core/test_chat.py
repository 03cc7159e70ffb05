"""Tests for chat thread helpers."""

import pytest

from promptlab.core.chat import history_for_regeneration
from promptlab.models.conversation import Message, Role


@pytest.fixture
def thread():
    return [
        Message(role=Role.USER, content="Hi"),
        Message(role=Role.ASSISTANT, content="Hello!"),
        Message(role=Role.USER, content="Tell me a joke"),
        Message(role=Role.ASSISTANT, content="No."),
        Message(role=Role.USER, content="Please"),
    ]


class TestHistoryForRegeneration:
    """Tests for history_for_regeneration."""

    def test_prefix_ends_at_preceding_user(self, thread):
        """Test the history stops at the user message before the reply."""
        history = history_for_regeneration(thread, 3)

        assert [m.content for m in history] == ["Hi", "Hello!", "Tell me a joke"]
        assert history[-1].role == Role.USER

    def test_first_reply(self, thread):
        """Test regenerating the first reply sends only the first message."""
        assert history_for_regeneration(thread, 1) == thread[:1]

    def test_does_not_mutate_thread(self, thread):
        """Test the input thread is untouched."""
        history_for_regeneration(thread, 3)
        assert len(thread) == 5

    def test_out_of_range(self, thread):
        """Test an index past the end is rejected."""
        with pytest.raises(ValueError, match="out of range"):
            history_for_regeneration(thread, 10)

    def test_not_an_assistant_message(self, thread):
        """Test a user message cannot be regenerated."""
        with pytest.raises(ValueError, match="not an assistant message"):
            history_for_regeneration(thread, 2)

    def test_assistant_without_user_before(self):
        """Test a reply with no user turn before it is rejected."""
        messages = [
            Message(role=Role.SYSTEM, content="rules"),
            Message(role=Role.ASSISTANT, content="hi"),
        ]
        with pytest.raises(ValueError, match="does not follow a user message"):
            history_for_regeneration(messages, 1)

    def test_leading_assistant(self):
        """Test an assistant message at index zero is rejected."""
        with pytest.raises(ValueError):
            history_for_regeneration([Message(role=Role.ASSISTANT, content="hi")], 0)

"""Tests for the conversation log."""

import pytest

from engbuddy.state.conversation_log import (
    ConversationLog,
    HistoryTurn,
    Message,
    Role,
    WELCOME_MESSAGE_ID,
)


class TestConversationLog:
    """Test cases for ConversationLog."""

    def setup_method(self):
        """Set up test fixtures."""
        self.seed = Message(id=WELCOME_MESSAGE_ID, role=Role.MODEL, text="Welcome!")
        self.log = ConversationLog(seed=self.seed)

    def test_seed_is_first_message(self):
        """Test the seed message opens the log."""
        assert len(self.log) == 1
        assert self.log[0] is self.seed
        assert self.log.seed_id == WELCOME_MESSAGE_ID

    def test_pending_seed_rejected(self):
        """Test a pending seed is refused."""
        seed = Message(id="welcome", role=Role.MODEL, text="", pending=True)
        with pytest.raises(ValueError):
            ConversationLog(seed=seed)

    def test_append_keeps_order_and_unique_ids(self):
        """Test appended messages keep insertion order with distinct ids."""
        first = self.log.append_user("one")
        second = self.log.append_user("two")
        pending = self.log.append_pending()

        assert [m.id for m in self.log] == [WELCOME_MESSAGE_ID, first.id, second.id, pending.id]
        assert len({m.id for m in self.log}) == 4
        assert first.role is Role.USER and first.is_user
        assert pending.is_model and pending.pending and pending.text == ""

    def test_only_one_pending(self):
        """Test a second placeholder is refused while one is pending."""
        self.log.append_pending()

        with pytest.raises(ValueError, match="already pending"):
            self.log.append_pending()

    def test_finalize_replaces_in_place(self):
        """Test finalizing keeps id and position."""
        self.log.append_user("I has a dog.")
        pending = self.log.append_pending()

        final = self.log.finalize(pending.id, "You have a dog.")

        assert final.id == pending.id
        assert final.text == "You have a dog."
        assert final.pending is False
        assert final.timestamp == pending.timestamp
        assert self.log[2] is final
        assert self.log.get(pending.id) is final
        assert self.log.pending is None
        assert len(self.log) == 3

    def test_finalize_twice_fails(self):
        """Test a message can only be finalized once."""
        pending = self.log.append_pending()
        self.log.finalize(pending.id, "done")

        with pytest.raises(ValueError):
            self.log.finalize(pending.id, "again")
        assert self.log.get(pending.id).text == "done"

    def test_finalize_unknown_id(self):
        """Test finalizing an unknown id raises KeyError."""
        with pytest.raises(KeyError):
            self.log.finalize("missing", "text")

    def test_finalize_non_pending_message(self):
        """Test user messages cannot be finalized."""
        user = self.log.append_user("hello")
        with pytest.raises(ValueError):
            self.log.finalize(user.id, "changed")

    def test_messages_is_snapshot(self):
        """Test the messages view does not change after later appends."""
        snapshot = self.log.messages
        self.log.append_user("later")

        assert isinstance(snapshot, tuple)
        assert len(snapshot) == 1
        assert len(self.log.messages) == 2

    def test_request_history_excludes_seed_and_pending(self):
        """Test history leaves out the welcome seed and any placeholder."""
        self.log.append_user("I has a dog.")
        reply = self.log.append_pending()
        self.log.finalize(reply.id, "You have a dog.")
        self.log.append_user("Thanks!")
        self.log.append_pending()

        history = self.log.request_history()

        assert history == [
            HistoryTurn(role="user", text="I has a dog."),
            HistoryTurn(role="model", text="You have a dog."),
            HistoryTurn(role="user", text="Thanks!"),
        ]

    def test_request_history_without_seed(self):
        """Test a log without seed projects every finalized message."""
        log = ConversationLog()
        log.append_user("hi")

        assert log.seed_id is None
        assert [turn.to_dict() for turn in log.request_history()] == [
            {"role": "user", "text": "hi"}
        ]

    def test_request_history_is_recomputed(self):
        """Test history reflects the log at call time."""
        assert self.log.request_history() == []
        self.log.append_user("hi")
        assert len(self.log.request_history()) == 1

    def test_messages_are_immutable(self):
        """Test message fields cannot be reassigned."""
        message = self.log.append_user("hi")
        with pytest.raises(AttributeError):
            message.text = "changed"

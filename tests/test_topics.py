"""Tests for wemqtt.topics module."""

from wemqtt.topics import (
    COMMAND_ENTITIES,
    command_topic,
    discovery_topic,
    make_topic,
    state_topic,
    status_topic,
)


class TestTopics:
    """Tests for topic naming helpers."""

    def test_make_topic(self) -> None:
        """Test that segments are joined with slashes."""
        assert make_topic("we", "node", "muted", "set") == "we/node/muted/set"

    def test_make_topic_does_not_escape(self) -> None:
        """Test that embedded separators are passed through."""
        assert make_topic("a/b", "c") == "a/b/c"

    def test_discovery_topic(self) -> None:
        """Test discovery registration topics."""
        assert (
            discovery_topic("select", "node", "select_profile")
            == "homeassistant/select/node/select_profile/config"
        )

    def test_status_topic(self) -> None:
        """Test the presence topic."""
        assert status_topic("node") == "homeassistant/status/node"

    def test_command_and_state_topics(self) -> None:
        """Test command and state topics."""
        assert command_topic("node", "paused") == "we/node/paused/set"
        assert state_topic("node", "paused") == "we/node/paused/state"

    def test_command_entities(self) -> None:
        """Test that every command entity is listed once."""
        assert len(set(COMMAND_ENTITIES)) == len(COMMAND_ENTITIES) == 9
        assert "refresh" in COMMAND_ENTITIES

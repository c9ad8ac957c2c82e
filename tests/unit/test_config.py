"""Tests for configuration loading."""

import pydantic
import pytest

from tmtickets.config import Config
from tmtickets.core.storage import create_backend
from tmtickets.core.storage.memory import MemoryStorageBackend


class TestConfig:
    """Tests for Config defaults and environment overrides."""

    def test_defaults(self):
        """Test the documented default values."""
        config = Config(_env_file=None)
        assert config.storage_backend == "mongo"
        assert config.ticket_number_prefix == "T-"
        assert config.ticket_number_start == 1000
        assert config.ticket_number_max_attempts == 5
        assert config.drafts_collection == "tickets-draft"
        assert config.reference_collection == "reference"
        assert config.tag_index_enabled is True

    def test_environment_prefix(self, monkeypatch):
        """Test that settings are read from TMTICKETS_* variables."""
        monkeypatch.setenv("TMTICKETS_TICKET_NUMBER_PREFIX", "TM-")
        monkeypatch.setenv("TMTICKETS_TICKET_NUMBER_START", "1")
        monkeypatch.setenv("TMTICKETS_TAG_INDEX_ENABLED", "false")
        config = Config(_env_file=None)
        assert config.ticket_number_prefix == "TM-"
        assert config.ticket_number_start == 1
        assert config.tag_index_enabled is False

    def test_blank_collection_falls_back_to_default(self, monkeypatch):
        """Test that blank collection names use the defaults and others are trimmed."""
        monkeypatch.setenv("TMTICKETS_DRAFTS_COLLECTION", "   ")
        monkeypatch.setenv("TMTICKETS_REFERENCE_COLLECTION", " Reference ")
        config = Config(_env_file=None)
        assert config.drafts_collection == "tickets-draft"
        assert config.reference_collection == "Reference"

    @pytest.mark.parametrize(
        "overrides",
        [{"draft_list_limit": 0}, {"draft_list_limit": 1001}, {"ticket_number_max_attempts": 0}, {"ticket_number_backoff": -1}],
    )
    def test_out_of_range_values_rejected(self, overrides):
        """Test that limits outside their bounds fail validation."""
        with pytest.raises(pydantic.ValidationError):
            Config(_env_file=None, **overrides)

    def test_memory_backend_selected(self):
        """Test that storage_backend=memory builds the in-memory backend."""
        config = Config(_env_file=None, storage_backend="memory", tag_index_enabled=False)
        backend = create_backend(config)
        assert isinstance(backend, MemoryStorageBackend)
        assert backend.drafts.tag_index_enabled is False

"""Tests for EngineConfig."""

from dataclasses import FrozenInstanceError

import pytest

from transfer_engine.core.config import DEFAULT_PREVIEW_LIMIT, EngineConfig
from transfer_engine.core.logging import LoggingConfig


class TestEngineConfig:
    """Tests for EngineConfig defaults and validation."""

    def test_defaults(self):
        config = EngineConfig()

        assert config.max_workers == 8
        assert config.chunk_size == 16 * 1024
        assert config.debug is False
        assert config.ca_bundle_path is None
        assert config.dump_preview_limit == DEFAULT_PREVIEW_LIMIT == 1024
        assert config.logging is None

    def test_is_immutable(self):
        config = EngineConfig()

        with pytest.raises(FrozenInstanceError):
            config.debug = True

    @pytest.mark.parametrize("kwargs", [
        {"max_workers": 0},
        {"max_workers": -1},
        {"chunk_size": 0},
        {"dump_preview_limit": -1},
    ])
    def test_validation(self, kwargs):
        with pytest.raises(ValueError):
            EngineConfig(**kwargs)

    def test_zero_preview_limit_allowed(self):
        assert EngineConfig(dump_preview_limit=0).dump_preview_limit == 0

    def test_create(self):
        logging_config = LoggingConfig.create(level="DEBUG")
        config = EngineConfig.create(
            max_workers=2,
            debug=True,
            ca_bundle_path="/tmp/ca.pem",
            logging=logging_config,
            chunk_size=1024,
        )

        assert config.max_workers == 2
        assert config.debug is True
        assert config.ca_bundle_path == "/tmp/ca.pem"
        assert config.logging is logging_config
        assert config.chunk_size == 1024

    def test_with_debug_returns_new_instance(self):
        config = EngineConfig(max_workers=3)
        debug_config = config.with_debug()

        assert debug_config is not config
        assert debug_config.debug is True
        assert debug_config.max_workers == 3
        assert config.debug is False
        assert debug_config.with_debug(False).debug is False

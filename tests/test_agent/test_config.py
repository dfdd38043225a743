"""Tests for agent.config module."""

import pytest

from agent.config import DEFAULT_SYSTEM_PROMPT, AgentConfig, get_config, set_config


class TestAgentConfig:
    """Test suite for the AgentConfig model."""

    def test_defaults(self):
        """Test the default configuration."""
        config = AgentConfig()

        assert config.max_iterations == 10
        assert config.system_prompt == DEFAULT_SYSTEM_PROMPT
        assert config.node_max_retries == 1
        assert config.node_retry_wait == 0.0
        assert config.model_timeout is None
        assert config.tool_timeout == 30.0
        assert config.flow_max_steps is None
        assert config.stream_tokens is False
        assert config.event_drain_timeout == 0.1

    def test_validation(self):
        """Test that out-of-range values are rejected."""
        with pytest.raises(ValueError):
            AgentConfig(max_iterations=0)
        with pytest.raises(ValueError):
            AgentConfig(node_retry_wait=-1)

    def test_from_env(self, monkeypatch):
        """Test loading overrides from PLANFLOW_ environment variables."""
        monkeypatch.setenv("PLANFLOW_MAX_ITERATIONS", "4")
        monkeypatch.setenv("PLANFLOW_SYSTEM_PROMPT", "You are terse.")
        monkeypatch.setenv("PLANFLOW_NODE_MAX_RETRIES", "3")
        monkeypatch.setenv("PLANFLOW_MODEL_TIMEOUT", "12.5")
        monkeypatch.setenv("PLANFLOW_FLOW_MAX_STEPS", "50")
        monkeypatch.setenv("PLANFLOW_STREAM_TOKENS", "true")
        monkeypatch.setenv("PLANFLOW_EVENT_DRAIN_TIMEOUT", "0")

        config = AgentConfig.from_env()

        assert config.max_iterations == 4
        assert config.system_prompt == "You are terse."
        assert config.node_max_retries == 3
        assert config.model_timeout == 12.5
        assert config.flow_max_steps == 50
        assert config.stream_tokens is True
        assert config.event_drain_timeout == 0.0

    def test_global_config(self, monkeypatch):
        """Test the module-level config singleton."""
        monkeypatch.setenv("PLANFLOW_MAX_ITERATIONS", "7")

        assert get_config() is get_config()
        assert get_config().max_iterations == 7

        custom = AgentConfig(max_iterations=2)
        set_config(custom)
        assert get_config() is custom

        set_config(None)
        assert get_config() is not custom

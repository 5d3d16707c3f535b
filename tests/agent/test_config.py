"""Tests for AgentConfig loading and saving."""

from __future__ import annotations

import yaml

from taskpool.agent.config import AgentConfig


class TestAgentConfigDefaults:
    def test_defaults(self):
        config = AgentConfig()
        assert config.server_url == "http://localhost:8000"
        assert config.agent_id.startswith("agent-")
        assert config.poll_interval == 5.0
        assert config.lease_seconds == 3600
        assert config.recommend_limit == 10
        assert config.scope == []


class TestAgentConfigLoad:
    def test_load_from_nonexistent_file_uses_defaults(self, tmp_path):
        config = AgentConfig.load(config_path=tmp_path / "nonexistent.yaml")
        assert config.server_url == "http://localhost:8000"
        assert config.lease_seconds == 3600

    def test_load_from_yaml_file(self, tmp_path):
        config_file = tmp_path / "agent.yaml"
        config_file.write_text(
            yaml.safe_dump(
                {
                    "server_url": "http://pool.internal:9000",
                    "agent_id": "it-bot",
                    "user_id": "it1",
                    "role": "it",
                    "scope": ["laptops"],
                    "poll_interval": 2.5,
                    "lease_seconds": 900,
                    "recommend_limit": 25,
                }
            )
        )

        config = AgentConfig.load(config_path=config_file)
        assert config.server_url == "http://pool.internal:9000"
        assert config.agent_id == "it-bot"
        assert config.user_id == "it1"
        assert config.role == "it"
        assert config.scope == ["laptops"]
        assert config.poll_interval == 2.5
        assert config.lease_seconds == 900
        assert config.recommend_limit == 25

    def test_env_vars_override_file(self, tmp_path, monkeypatch):
        config_file = tmp_path / "agent.yaml"
        config_file.write_text(
            yaml.safe_dump({"server_url": "http://from-file:8000", "agent_id": "file-bot"})
        )

        monkeypatch.setenv("TASKPOOL_SERVER_URL", "http://from-env:9000")
        monkeypatch.setenv("TASKPOOL_AGENT_ID", "env-bot")
        monkeypatch.setenv("TASKPOOL_LEASE_SECONDS", "60")

        config = AgentConfig.load(config_path=config_file)
        assert config.server_url == "http://from-env:9000"
        assert config.agent_id == "env-bot"
        assert config.lease_seconds == 60

    def test_invalid_yaml_falls_back_to_defaults(self, tmp_path):
        config_file = tmp_path / "agent.yaml"
        config_file.write_text("server_url: [unclosed")

        config = AgentConfig.load(config_path=config_file)
        assert config.server_url == "http://localhost:8000"


class TestAgentConfigSave:
    def test_save_and_reload(self, tmp_path):
        path = tmp_path / "nested" / "agent.yaml"
        AgentConfig(server_url="http://saved:1234", agent_id="saved-bot", lease_seconds=300).save(
            path
        )

        data = yaml.safe_load(path.read_text())
        assert data["server_url"] == "http://saved:1234"
        assert data["agent_id"] == "saved-bot"

        reloaded = AgentConfig.load(config_path=path)
        assert reloaded.agent_id == "saved-bot"
        assert reloaded.lease_seconds == 300

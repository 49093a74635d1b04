import json
import os

import pytest

from shared.clients.errors import ConfigurationError
from shared.models.settings import DEFAULT_SYSTEM_PROMPT
from shared.settings.SettingsManager import SettingsManager


def test_defaults(settings_manager):
    settings = settings_manager.get_settings()
    assert settings.chat_model == "gpt-3.5-turbo"
    assert settings.temperature == 0.7
    assert settings.max_tokens == 1000
    assert settings.system_prompt == DEFAULT_SYSTEM_PROMPT
    assert settings.vector_auto_sync is False
    assert settings.chat_retrieval_instructions is True


@pytest.mark.parametrize("value, expected", [("sk-abcdef", "sk-***"), ("abc", "sk-***"), ("x", "sk-***"), ("", "")])
def test_mask(value, expected):
    assert SettingsManager.mask(value) == expected


def test_secrets_are_masked_on_external_reads(settings_manager):
    settings_manager.save({"llm_openai_api_key": "sk-live-123", "vector_wpxplore_api_secret_key": "topsecret"})

    masked = settings_manager.get_masked()
    assert masked["llm_openai_api_key"] == "sk-***"
    assert masked["vector_wpxplore_api_secret_key"] == "sk-***"
    assert masked["chat_model"] == "gpt-3.5-turbo"
    assert settings_manager.get_all()["llm_openai_api_key"] == "sk-live-123"


@pytest.mark.parametrize("submitted", ["", "   ", None, "sk-***"])
def test_blank_or_masked_secret_keeps_stored_value(settings_manager, submitted):
    settings_manager.save({"llm_openai_api_key": "sk-live-123"})
    settings_manager.save({"llm_openai_api_key": submitted, "chat_model": "gpt-4o"})

    values = settings_manager.get_all()
    assert values["llm_openai_api_key"] == "sk-live-123"
    assert values["chat_model"] == "gpt-4o"


def test_unknown_keys_are_ignored(settings_manager):
    settings_manager.save({"not_a_setting": 1, "site_name": "Bakery Guide"})
    assert "not_a_setting" not in settings_manager.get_all()
    assert settings_manager.get_settings().site_name == "Bakery Guide"


@pytest.mark.parametrize("partial", [{"temperature": 1.5}, {"max_tokens": 0}, {"listing_chunk_size": -1}])
def test_invalid_values_are_rejected(settings_manager, partial):
    with pytest.raises(ConfigurationError):
        settings_manager.save(partial)
    assert settings_manager.get_settings().temperature == 0.7


def test_settings_persist_to_file(helper_config, tmp_path):
    path = os.path.join(tmp_path, "data", "settings.json")
    SettingsManager(helper_config=helper_config, file_path=path).save({"chat_agent_name": "Ava", "temperature": 0.2})

    with open(path, encoding="utf-8") as handle:
        assert json.load(handle)["chat_agent_name"] == "Ava"

    reloaded = SettingsManager(helper_config=helper_config, file_path=path).get_settings()
    assert reloaded.chat_agent_name == "Ava"
    assert reloaded.temperature == 0.2


def test_invalid_stored_field_falls_back_to_default(helper_config, tmp_path):
    path = tmp_path / "settings.json"
    path.write_text(json.dumps({"temperature": 7, "site_name": "Guide"}), encoding="utf-8")

    settings = SettingsManager(helper_config=helper_config, file_path=str(path)).get_settings()
    assert settings.temperature == 0.7
    assert settings.site_name == "Guide"


def test_short_secret_is_never_revealed(settings_manager):
    settings_manager.save({"vector_qdrant_api_key": "abc"})

    masked = settings_manager.get_masked()["vector_qdrant_api_key"]
    assert masked == "sk-***"
    assert "abc" not in masked

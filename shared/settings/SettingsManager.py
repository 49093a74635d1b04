import json
import os
from typing import Any

from pydantic import ValidationError

from shared.clients.errors import ConfigurationError
from shared.helper.HelperConfig import HelperConfig
from shared.models.settings import AssistantSettings

SECRET_SUFFIXES = ("api_key", "secret_key")
MASK = "***"
MASKED_SECRET = f"sk-{MASK}"


class SettingsManager:
    """
    Key/value store of the assistant settings.

    Settings are persisted as one JSON record. Secrets are masked on every
    externally facing read, and a blank or masked secret on save means
    "keep the stored value".
    """

    def __init__(self, helper_config: HelperConfig, file_path: str | None = None):
        self.logging = helper_config.get_logger()
        self._file_path = file_path
        # used when no file is attached
        self._memory: dict[str, Any] = {}

    ##########################################
    ################ HELPERS #################
    ##########################################

    @staticmethod
    def is_secret_key(key: str) -> bool:
        return key.endswith(SECRET_SUFFIXES)

    @staticmethod
    def mask(value: str) -> str:
        """Return the constant placeholder for a stored secret, "" when none is stored."""
        if not value:
            return ""
        return MASKED_SECRET

    def _load(self) -> dict[str, Any]:
        if self._file_path is None:
            return dict(self._memory)
        if not os.path.exists(self._file_path):
            return {}
        try:
            with open(self._file_path, "r", encoding="utf-8") as handle:
                stored = json.load(handle)
        except (OSError, json.JSONDecodeError) as e:
            self.logging.error("Could not read settings file %s: %s", self._file_path, e)
            return {}
        return stored if isinstance(stored, dict) else {}

    def _store(self, values: dict[str, Any]) -> None:
        if self._file_path is None:
            self._memory = dict(values)
            return
        os.makedirs(os.path.dirname(self._file_path) or ".", exist_ok=True)
        with open(self._file_path, "w", encoding="utf-8") as handle:
            json.dump(values, handle, indent=2, ensure_ascii=False)

    ##########################################
    ################ GETTER ##################
    ##########################################

    def get_settings(self) -> AssistantSettings:
        """
        Returns the stored settings merged over the defaults.

        Stored values that no longer validate are logged and replaced by their defaults.
        """
        stored = self._load()
        try:
            return AssistantSettings.model_validate(stored)
        except ValidationError as e:
            self.logging.warning("Stored settings are invalid, falling back to defaults for bad fields: %s", e)
            bad_fields = {str(err["loc"][0]) for err in e.errors() if err.get("loc")}
            return AssistantSettings.model_validate({k: v for k, v in stored.items() if k not in bad_fields})

    def get_all(self) -> dict[str, Any]:
        """
        Returns:
            dict[str, Any]: All settings with secrets in clear text, for internal use only.
        """
        return self.get_settings().model_dump()

    def get_masked(self) -> dict[str, Any]:
        """
        Returns:
            dict[str, Any]: All settings with every secret masked, for external reads.
        """
        values = self.get_all()
        for key, value in values.items():
            if self.is_secret_key(key) and isinstance(value, str):
                values[key] = self.mask(value)
        return values

    ##########################################
    ################ SETTER ##################
    ##########################################

    def save(self, partial: dict[str, Any]) -> bool:
        """
        Merges a partial update into the stored settings and persists them.

        Args:
            partial (dict[str, Any]): The changed settings. Unknown keys are ignored;
                blank or masked secrets keep their stored value.

        Returns:
            bool: True once the merged settings are persisted.

        Raises:
            ConfigurationError: If the merged settings do not validate.
        """
        merged = self.get_all()
        for key, value in partial.items():
            if key not in AssistantSettings.model_fields:
                self.logging.debug("Ignoring unknown setting '%s'.", key)
                continue
            if self.is_secret_key(key) and (value is None or not str(value).strip() or MASK in str(value)):
                continue
            merged[key] = value

        try:
            validated = AssistantSettings.model_validate(merged)
        except ValidationError as e:
            raise ConfigurationError(f"Invalid settings: {e.errors()[0].get('msg', 'validation failed')}") from e

        self._store(validated.model_dump())
        self.logging.info("Settings saved (%d field(s) submitted).", len(partial))
        return True

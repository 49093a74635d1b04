import os
import tempfile

import pytest


def pytest_configure(config):
    # logs and settings of the test run go to a scratch directory
    os.environ["ROOT_DIR"] = tempfile.mkdtemp(prefix="listing_ai_bridge_")
    os.environ["API_SERVER_API_KEY"] = "test-api-key"
    os.environ.pop("SETTINGS_FILE", None)


@pytest.fixture
def helper_config():
    from shared.helper.HelperConfig import HelperConfig
    from shared.logging.logging_setup import setup_logging

    return HelperConfig(logger=setup_logging())


@pytest.fixture
def settings_manager(helper_config):
    from shared.settings.SettingsManager import SettingsManager

    return SettingsManager(helper_config=helper_config)

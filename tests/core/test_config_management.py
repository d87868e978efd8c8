# tests/core/test_config_management.py
import logging

import pytest

from pagefacts.dom.document import ParseOptions
from pagefacts.managers.config_manager import ConfigManager, config_manager
from pagefacts.model import OptimizerSettings
from pagefacts.utils.configure_logging import LogWithTqdm, configure_logger
from pagefacts.utils.path_utils import PathUtils

# A small, predictable configuration for these tests.
MOCK_SETTINGS_CONTENT = {
    "optimizer": {
        "batch_size": 50,
        "chunk_size": 4096,
        "force_strategy": None,
    },
    "parser": {
        "tolerant": False,
        "features": "html.parser",
    },
    "logging": {
        "level": "WARNING",
        "module_levels": {"pagefacts.services": "DEBUG"},
        "silenced": {"bs4": "ERROR"},
    },
}


@pytest.fixture
def manager(isolated_config):
    return isolated_config(MOCK_SETTINGS_CONTENT)


@pytest.fixture
def restore_logging():
    root = logging.getLogger()
    handlers, level = list(root.handlers), root.level
    yield
    root.handlers[:] = handlers
    root.setLevel(level)
    logging.getLogger("pagefacts.services").setLevel(logging.NOTSET)
    logging.getLogger("bs4").setLevel(logging.NOTSET)


def test_config_manager_is_a_singleton(manager):
    assert ConfigManager() is manager
    assert manager is config_manager


def test_bundled_settings_file_exists():
    assert PathUtils.get_settings_file().name == "settings.json"
    assert PathUtils.get_settings_file().exists()


def test_config_manager_load(manager):
    config = manager.get_all()
    assert config["optimizer"]["batch_size"] == 50
    assert config["parser"]["tolerant"] is False


def test_config_manager_get_nested(manager):
    assert manager.get_nested("optimizer.chunk_size") == 4096
    assert manager.get_nested("optimizer.force_strategy", "none") == "none"
    assert manager.get_nested("non.existent.key", "default") == "default"


def test_config_manager_set_nested_casts_to_existing_type(manager):
    manager.set_nested("optimizer.batch_size", "20")
    assert manager.get_nested("optimizer.batch_size") == 20
    assert isinstance(manager.get_nested("optimizer.batch_size"), int)

    manager.set_nested("parser.tolerant", "true")
    assert manager.get_nested("parser.tolerant") is True

    manager.set_nested("new_section.enabled", "yes")
    assert manager.get_nested("new_section.enabled") == "yes"


def test_config_manager_reset(manager):
    manager.set_nested("optimizer.batch_size", 999)
    manager.reset()
    assert manager.get_nested("optimizer.batch_size") == 50


def test_missing_settings_file_gives_empty_config(isolated_config, monkeypatch, tmp_path):
    manager = isolated_config({})
    monkeypatch.setattr(PathUtils, "get_settings_file", staticmethod(lambda: tmp_path / "missing.json"))
    manager.reset()
    assert manager.get_all() == {}
    assert OptimizerSettings.from_config().batch_size == 500


def test_optimizer_settings_from_config(manager):
    settings = OptimizerSettings.from_config()
    assert settings.batch_size == 50
    assert settings.chunk_size == 4096
    assert settings.large_html_threshold == 1024 * 1024
    assert settings.force_strategy is None

    assert OptimizerSettings.from_config(batch_size=7).batch_size == 7


def test_parse_options_from_config(manager):
    assert ParseOptions.from_config() == ParseOptions(tolerant=False, features="html.parser")


def test_configure_logger_uses_the_logging_section(manager, restore_logging):
    root = configure_logger()
    assert root.level == logging.WARNING
    assert len(root.handlers) == 1
    assert isinstance(root.handlers[0], LogWithTqdm)
    assert logging.getLogger("pagefacts.services").level == logging.DEBUG
    assert logging.getLogger("bs4").level == logging.ERROR


def test_configure_logger_arguments_win(manager, restore_logging):
    root = configure_logger(general_level="ERROR", module_specific_levels={}, silenced_loggers={})
    assert root.level == logging.ERROR


def test_log_with_tqdm_writes_through_tqdm(monkeypatch):
    written = []
    monkeypatch.setattr("pagefacts.utils.configure_logging.tqdm.write", lambda msg, file=None: written.append(msg))

    handler = LogWithTqdm()
    handler.setFormatter(logging.Formatter("%(levelname)s %(message)s"))
    handler.emit(logging.LogRecord("x", logging.WARNING, __file__, 1, "careful %s", ("now",), None))

    assert written == ["WARNING careful now"]

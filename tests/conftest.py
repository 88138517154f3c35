import pytest

from vellum.core import config as config_module
from vellum.core.config import Config
from vellum.utils.logger import MemoryHandler, get_logger


@pytest.fixture
def log_records():
    """Capture records emitted by every vellum logger."""
    handler = MemoryHandler()
    logger = get_logger("vellum")
    logger.add_handler(handler)
    yield handler.records
    logger.remove_handler(handler)


@pytest.fixture
def app_config(monkeypatch):
    """A fresh global config, isolated from VELLUM_* variables."""
    cfg = Config(load_env=False)
    monkeypatch.setattr(config_module, "_config", cfg)
    return cfg

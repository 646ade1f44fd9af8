import pytest

import config as config_module
from config import Config, get_config


@pytest.fixture(autouse=True)
def no_dotenv(monkeypatch):
    monkeypatch.setattr(config_module, 'load_dotenv', lambda **kwargs: False)
    for name in ('HOST', 'PORT', 'DEBUG', 'DATA_FILE', 'UPLOAD_FOLDER', 'MAX_UPLOAD_MB', 'LOG_LEVEL'):
        monkeypatch.delenv(name, raising=False)


def test_defaults():
    assert get_config() == Config()
    assert Config().max_content_length == 16 * 1024 * 1024


def test_reads_environment(monkeypatch):
    monkeypatch.setenv('PORT', '8080')
    monkeypatch.setenv('DEBUG', 'false')
    monkeypatch.setenv('DATA_FILE', '/tmp/roster.json')
    monkeypatch.setenv('UPLOAD_FOLDER', '')

    cfg = get_config()
    assert cfg.port == 8080
    assert cfg.debug is False
    assert cfg.data_file == '/tmp/roster.json'
    assert cfg.upload_folder is None


def test_bad_integer(monkeypatch):
    monkeypatch.setenv('PORT', 'eighty')
    with pytest.raises(ValueError):
        get_config()


from iacrunner import config


def _clear(monkeypatch):
    for key in ("IACRUNNER_TERRAFORM_PATH", "TERRAFORM_BINARY", "IACRUNNER_TIMEOUT", "NO_COLOR", "IACRUNNER_LOG_LEVEL"):
        # setenv first so teardown also drops values loaded from .env files
        monkeypatch.setenv(key, "")
        monkeypatch.delenv(key)


def test_default_binary_is_terraform(monkeypatch):
    _clear(monkeypatch)
    assert config.resolve_binary() == "terraform"


def test_terraform_binary_env(monkeypatch):
    _clear(monkeypatch)
    monkeypatch.setenv("TERRAFORM_BINARY", "/opt/tf")
    assert config.resolve_binary() == "/opt/tf"


def test_iacrunner_path_takes_precedence(monkeypatch):
    _clear(monkeypatch)
    monkeypatch.setenv("TERRAFORM_BINARY", "/opt/tf")
    monkeypatch.setenv("IACRUNNER_TERRAFORM_PATH", "/usr/local/bin/terraform")
    assert config.resolve_binary() == "/usr/local/bin/terraform"


def test_cli_override_wins(monkeypatch):
    _clear(monkeypatch)
    monkeypatch.setenv("IACRUNNER_TERRAFORM_PATH", "/usr/local/bin/terraform")
    assert config.resolve_binary("/custom/terraform") == "/custom/terraform"


def test_load_config_reads_env(monkeypatch):
    _clear(monkeypatch)
    monkeypatch.setenv("TERRAFORM_BINARY", "/opt/tf")
    monkeypatch.setenv("IACRUNNER_TIMEOUT", "30")
    monkeypatch.setenv("IACRUNNER_LOG_LEVEL", "debug")
    cfg = config.load_config(no_color=True, load_env_files=False)
    assert cfg.terraform_binary == "/opt/tf"
    assert cfg.default_timeout == 30.0
    assert cfg.no_color is True
    assert cfg.log_level == "DEBUG"


def test_blank_or_zero_timeout_means_none(monkeypatch):
    _clear(monkeypatch)
    for raw in ("", "0", "abc", "-5"):
        monkeypatch.setenv("IACRUNNER_TIMEOUT", raw)
        assert config.load_config(load_env_files=False).default_timeout is None


def test_dotenv_file_is_loaded_without_overriding(monkeypatch, tmp_path):
    _clear(monkeypatch)
    (tmp_path / ".env").write_text("TERRAFORM_BINARY=/from/dotenv\nIACRUNNER_TIMEOUT=12\n")
    monkeypatch.chdir(tmp_path)
    monkeypatch.setenv("IACRUNNER_TIMEOUT", "5")
    cfg = config.load_config()
    assert cfg.terraform_binary == "/from/dotenv"
    assert cfg.default_timeout == 5.0

import yaml

from resilient_ui.common.global_config import get_config, get_logger, reload_config, set_config


def test_yaml_then_env_override(config_dir, monkeypatch):
    (config_dir / "config.yaml").write_text(
        yaml.dump({"logging": {"level": "DEBUG"}, "engine": {"poll_interval": 0.1}}),
        encoding="utf-8",
    )
    reload_config()
    assert get_config("logging.level") == "DEBUG"
    assert get_config("engine.poll_interval") == 0.1
    assert get_config("engine.max_alerts") == 10
    assert get_config("missing.key", 7) == 7

    monkeypatch.setenv("ENGINE__POLL_INTERVAL", "0.2")
    reload_config()
    assert get_config("engine.poll_interval") == 0.2


def test_environment_file_is_merged(config_dir, monkeypatch):
    (config_dir / "config.yaml").write_text(
        yaml.dump({"engine": {"max_alerts": 5, "settle_delay": 2}}),
        encoding="utf-8",
    )
    (config_dir / "ci.yaml").write_text(yaml.dump({"engine": {"max_alerts": 3}}), encoding="utf-8")
    monkeypatch.setenv("ENV", "ci")
    reload_config()
    assert get_config("engine.max_alerts") == 3
    assert get_config("engine.settle_delay") == 2


def test_set_config_at_runtime(config_dir):
    reload_config()
    set_config("engine.settle_delay", 0)
    assert get_config("engine.settle_delay") == 0


def test_get_logger_returns_configured_logger(config_dir):
    reload_config()
    log = get_logger()
    log.debug("logger ready")
    assert hasattr(log, "add")

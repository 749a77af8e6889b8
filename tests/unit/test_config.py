import pytest
import yaml

from rentals_lib.config import Config, config_from_dict, load_config, write_template
from rentals_lib.config.config import ALLOW_DATA_CLEAR_ENV


def test_defaults_when_file_missing(tmp_path, monkeypatch):
    monkeypatch.delenv(ALLOW_DATA_CLEAR_ENV, raising=False)
    cfg = load_config(tmp_path / 'missing.yml')
    assert cfg == Config()
    assert cfg.allow_data_clear is False
    assert cfg.protected_collections == ['users']
    policy = cfg.retry_policy()
    assert (policy.attempts, policy.settle_delay, policy.retry_delay) == (5, 0.2, 0.3)


def test_load_yaml_and_ignore_unknown_keys(tmp_path, monkeypatch):
    monkeypatch.delenv(ALLOW_DATA_CLEAR_ENV, raising=False)
    path = tmp_path / 'server_config.yml'
    path.write_text(yaml.safe_dump({'storage_backend': 'memory', 'verify_attempts': 3, 'legacy_option': 1}))
    cfg = load_config(path)
    assert cfg.storage_backend == 'memory'
    assert cfg.retry_policy().attempts == 3


def test_env_overrides_allow_data_clear(tmp_path, monkeypatch):
    path = tmp_path / 'server_config.yml'
    path.write_text(yaml.safe_dump({'allow_data_clear': True}))
    monkeypatch.setenv(ALLOW_DATA_CLEAR_ENV, '0')
    assert load_config(path).allow_data_clear is False
    monkeypatch.setenv(ALLOW_DATA_CLEAR_ENV, 'yes')
    assert load_config(tmp_path / 'missing.yml').allow_data_clear is True


def test_non_mapping_config_rejected(tmp_path):
    path = tmp_path / 'server_config.yml'
    path.write_text('- just\n- a list\n')
    with pytest.raises(ValueError):
        load_config(path)


def test_write_template_round_trips(tmp_path, monkeypatch):
    monkeypatch.delenv(ALLOW_DATA_CLEAR_ENV, raising=False)
    path = write_template(tmp_path / 'config' / 'server_config.yml')
    assert path.exists()
    assert load_config(path) == Config()


def test_config_from_dict():
    assert config_from_dict({'query_cache_ttl': 1.5}).query_cache_ttl == 1.5

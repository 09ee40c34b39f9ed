"""
Test user config persistence.
"""

import pytest

from ore_dashboard.core.exceptions import ConfigIOError
from ore_dashboard.services.config_store import DEFAULT_THEME, AccountConfig, ConfigStore, UserConfig


def test_round_trip(tmp_path):
    store = ConfigStore(str(tmp_path / "user-config.json"))
    config = UserConfig(
        configs=[
            AccountConfig(json_rpc_url="https://api.devnet.solana.com", keypair_path="~/id.json", priority_fee=10),
            AccountConfig(json_rpc_url="https://rpc.example", keypair_path="/keys/b.json", priority_fee=0),
        ],
        theme="Dracula",
    )

    store.save(config)

    assert store.load() == config


def test_missing_file_loads_empty(tmp_path):
    config = ConfigStore(str(tmp_path / "absent.json")).load()

    assert config.configs == []
    assert config.theme == DEFAULT_THEME


def test_corrupt_file_loads_empty(tmp_path):
    path = tmp_path / "user-config.json"
    path.write_text("{not json")

    assert ConfigStore(str(path)).load() == UserConfig()


def test_negative_priority_fee_is_rejected(tmp_path):
    path = tmp_path / "user-config.json"
    path.write_text('{"configs": [{"json_rpc_url": "u", "keypair_path": "k", "priority_fee": -1}]}')

    assert ConfigStore(str(path)).load().configs == []


def test_save_failure_raises_config_io_error(tmp_path):
    blocker = tmp_path / "blocker"
    blocker.write_text("")
    store = ConfigStore(str(blocker / "user-config.json"))

    with pytest.raises(ConfigIOError):
        store.save(UserConfig())

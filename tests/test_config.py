# tests/test_config.py

from packed_voting import config as cfgmod
from packed_voting.voting_api import build_registry


def test_defaults_without_file(tmp_path, monkeypatch):
    for name in ("VOTING_BACKEND", "VOTING_OWNER", "VOTING_ENFORCE_WINDOW", "VOTING_PERSISTENCE", "VOTING_PORT"):
        monkeypatch.delenv(name, raising=False)
    cfg = cfgmod.load_config(str(tmp_path))
    assert cfgmod.get_backend(cfg) == "packed"
    assert cfgmod.get_owner(cfg) == cfgmod.DEFAULT_OWNER
    assert cfgmod.get_enforce_vote_window(cfg) is True
    assert cfgmod.get_persistence_driver(cfg) == "memory"
    assert cfgmod.get_bind_port(cfg) == 8000


def test_yaml_file_merges_over_defaults(tmp_path, monkeypatch):
    monkeypatch.delenv("VOTING_BACKEND", raising=False)
    monkeypatch.delenv("VOTING_ENFORCE_WINDOW", raising=False)
    (tmp_path / cfgmod.CONFIG_FILENAME).write_text(
        "registry:\n  backend: normal\n  enforce_vote_window: false\nlogging:\n  level: debug\n"
    )
    cfg = cfgmod.load_config(str(tmp_path))
    assert cfgmod.get_backend(cfg) == "normal"
    assert cfgmod.get_enforce_vote_window(cfg) is False
    assert cfgmod.get_log_level(cfg) == "DEBUG"
    # untouched keys keep their defaults
    assert cfgmod.get_persistence_driver(cfg) == "memory"


def test_env_overrides_file(tmp_path, monkeypatch):
    (tmp_path / cfgmod.CONFIG_FILENAME).write_text("server:\n  port: 9000\n")
    monkeypatch.setenv("VOTING_PORT", "9100")
    monkeypatch.setenv("VOTING_ENFORCE_WINDOW", "0")
    cfg = cfgmod.load_config(str(tmp_path))
    assert cfgmod.get_bind_port(cfg) == 9100
    assert cfgmod.get_enforce_vote_window(cfg) is False


def test_bad_env_value_ignored(tmp_path, monkeypatch):
    monkeypatch.setenv("VOTING_PORT", "not-a-port")
    cfg = cfgmod.load_config(str(tmp_path))
    assert cfgmod.get_bind_port(cfg) == 8000


def test_unparsable_yaml_falls_back(tmp_path, monkeypatch):
    monkeypatch.delenv("VOTING_BACKEND", raising=False)
    (tmp_path / cfgmod.CONFIG_FILENAME).write_text("registry: [unclosed\n")
    cfg = cfgmod.load_config(str(tmp_path))
    assert cfgmod.get_backend(cfg) == "packed"


def test_json_persistence_driver(tmp_path, monkeypatch):
    monkeypatch.delenv("VOTING_DATA_DIR", raising=False)
    monkeypatch.delenv("VOTING_PERSISTENCE", raising=False)
    (tmp_path / cfgmod.CONFIG_FILENAME).write_text(
        f"persistence:\n  driver: json\n  data_dir: {tmp_path / 'data'}\n"
    )
    cfg = cfgmod.load_config(str(tmp_path))
    reg = build_registry(cfg)
    assert reg.snapshot_store is not None
    assert reg.snapshot_store.path == tmp_path / "data" / "voting_state.json"


def test_quoted_yaml_booleans(tmp_path, monkeypatch):
    monkeypatch.delenv("VOTING_ENFORCE_WINDOW", raising=False)
    (tmp_path / cfgmod.CONFIG_FILENAME).write_text('registry:\n  enforce_vote_window: "false"\n')
    cfg = cfgmod.load_config(str(tmp_path))
    assert cfgmod.get_enforce_vote_window(cfg) is False

    (tmp_path / cfgmod.CONFIG_FILENAME).write_text("registry:\n  enforce_vote_window: 'on'\n")
    cfg = cfgmod.load_config(str(tmp_path))
    assert cfgmod.get_enforce_vote_window(cfg) is True

# tests/test_config.py

import logging

import pytest

from qvote_node.config import (
    configure_logging,
    default_config,
    election_settings,
    get_admin_role,
    get_approved_communities,
    load_config,
)


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for name in (
        "QVOTE_MAX_CREDITS",
        "QVOTE_MAX_VOTES_PER_CAST",
        "QVOTE_LOCK_TIMEOUT",
        "QVOTE_APPROVED_COMMUNITIES",
        "QVOTE_ADMIN_ROLE",
        "QVOTE_LOG_LEVEL",
    ):
        monkeypatch.delenv(name, raising=False)


def test_defaults_without_file(tmp_path):
    cfg = load_config(str(tmp_path))
    s = election_settings(cfg)

    assert s.max_credits == 100
    assert s.max_votes_per_cast == 10
    assert s.retain_last_tally is True
    assert s.winners_shown == 5
    assert get_admin_role(cfg) == "voting"
    assert get_approved_communities(cfg) == []


def test_yaml_overlays_defaults(tmp_path):
    (tmp_path / "qvote_config.yaml").write_text(
        "election:\n"
        "  max_credits: 49\n"
        "communities:\n"
        "  approved: [\"936062001820622888\"]\n"
    )
    cfg = load_config(str(tmp_path))
    s = election_settings(cfg)

    assert s.max_credits == 49
    # untouched keys in the same section keep their defaults
    assert s.max_votes_per_cast == 10
    assert get_approved_communities(cfg) == ["936062001820622888"]


def test_env_overrides_yaml(tmp_path, monkeypatch):
    (tmp_path / "qvote_config.yaml").write_text("election:\n  max_credits: 49\n")
    monkeypatch.setenv("QVOTE_MAX_CREDITS", "144")
    monkeypatch.setenv("QVOTE_APPROVED_COMMUNITIES", "alpha, beta,,")
    monkeypatch.setenv("QVOTE_ADMIN_ROLE", "stewards")

    cfg = load_config(str(tmp_path))
    assert election_settings(cfg).max_credits == 144
    assert get_approved_communities(cfg) == ["alpha", "beta"]
    assert get_admin_role(cfg) == "stewards"


def test_bad_env_value_is_ignored(tmp_path, monkeypatch):
    monkeypatch.setenv("QVOTE_MAX_CREDITS", "lots")
    cfg = load_config(str(tmp_path))
    assert election_settings(cfg).max_credits == 100


def test_unparseable_yaml_falls_back_to_defaults(tmp_path):
    (tmp_path / "qvote_config.yaml").write_text("election: [unclosed\n")
    cfg = load_config(str(tmp_path))
    assert cfg == load_config(str(tmp_path / "missing"))


def test_non_positive_settings_rejected():
    cfg = default_config()
    cfg["election"]["max_credits"] = 0
    with pytest.raises(ValueError):
        election_settings(cfg)


def test_default_config_is_a_copy():
    cfg = default_config()
    cfg["election"]["max_credits"] = 1
    assert default_config()["election"]["max_credits"] == 100


# ============================================================
# Logging / CLI entrypoint
# ============================================================

@pytest.fixture
def root_level():
    root = logging.getLogger()
    before = root.level
    yield root
    root.setLevel(before)


def test_configure_logging_applies_level_on_every_call(root_level):
    configure_logging({"logging": {"level": "INFO"}})
    configure_logging({"logging": {"level": "warning"}})
    assert root_level.level == logging.WARNING

    configure_logging({"logging": {"level": "nonsense"}})
    assert root_level.level == logging.INFO


def test_cli_uses_root_config_only(tmp_path, monkeypatch, root_level):
    """
    `python -m qvote_node --root DIR`:
    - takes logging.level from DIR/qvote_config.yaml
    - never reads the working directory's config (here an invalid one)
    - builds and serves exactly one app
    """
    import qvote_node.__main__ as entry

    root = tmp_path / "root"
    root.mkdir()
    (root / "qvote_config.yaml").write_text("logging:\n  level: DEBUG\nserver:\n  port: 8123\n")

    cwd = tmp_path / "cwd"
    cwd.mkdir()
    (cwd / "qvote_config.yaml").write_text("election:\n  max_credits: 0\n")
    monkeypatch.chdir(cwd)

    served = []
    monkeypatch.setattr(entry.uvicorn, "run", lambda app, **kw: served.append((app, kw)))

    assert entry.main(["--root", str(root)]) == 0

    assert root_level.level == logging.DEBUG
    assert len(served) == 1
    app, kwargs = served[0]
    assert kwargs == {"host": "0.0.0.0", "port": 8123}
    assert app.state.communities.settings.max_credits == 100

"""
test_config.py — Path resolution and SplitterConfig defaults.
"""
from __future__ import annotations

import logging
import os

from core.config import (
    DEFAULT_OUTPUT_DIR,
    DEFAULT_SOURCE_PATH,
    ENV_LOG_LEVEL,
    ENV_OUTPUT_DIR,
    ENV_SOURCE_PATH,
    ENV_TEMPLATE_PATH,
    SplitterConfig,
    configure_logging,
    resolve_output_dir,
    resolve_source_path,
    resolve_template_path,
)


def _clear_env(monkeypatch):
    for name in (ENV_SOURCE_PATH, ENV_OUTPUT_DIR, ENV_TEMPLATE_PATH, ENV_LOG_LEVEL):
        monkeypatch.delenv(name, raising=False)


def test_defaults_without_env(monkeypatch, tmp_path):
    _clear_env(monkeypatch)
    assert resolve_source_path() == DEFAULT_SOURCE_PATH
    assert resolve_output_dir() == DEFAULT_OUTPUT_DIR
    assert resolve_template_path(str(tmp_path)) == os.path.join(
        str(tmp_path), "templates", "RL_NEW_PAYABLES_TLC_TM.XLS"
    )


def test_env_absolute_path_wins(monkeypatch, tmp_path):
    _clear_env(monkeypatch)
    src = str(tmp_path / "in.xls")
    monkeypatch.setenv(ENV_SOURCE_PATH, src)
    assert resolve_source_path() == src


def test_env_relative_path_uses_project_root(monkeypatch, tmp_path):
    _clear_env(monkeypatch)
    monkeypatch.setenv(ENV_TEMPLATE_PATH, os.path.join("tpl", "t.xls"))
    assert resolve_template_path(str(tmp_path)) == str(tmp_path / "tpl" / "t.xls")


def test_env_relative_path_uses_cwd_without_root(monkeypatch, tmp_path):
    _clear_env(monkeypatch)
    monkeypatch.chdir(tmp_path)
    monkeypatch.setenv(ENV_OUTPUT_DIR, "export")
    assert resolve_output_dir() == str(tmp_path / "export")


def test_from_env_collects_everything(monkeypatch, tmp_path):
    _clear_env(monkeypatch)
    monkeypatch.setenv(ENV_SOURCE_PATH, str(tmp_path / "s.xls"))
    monkeypatch.setenv(ENV_OUTPUT_DIR, str(tmp_path / "out"))
    monkeypatch.setenv(ENV_LOG_LEVEL, "debug")

    cfg = SplitterConfig.from_env(str(tmp_path))

    assert cfg.source_path == str(tmp_path / "s.xls")
    assert cfg.output_dir == str(tmp_path / "out")
    assert cfg.template_path.endswith(os.path.join("templates", "RL_NEW_PAYABLES_TLC_TM.XLS"))
    assert cfg.log_level == "DEBUG"


def test_config_defaults():
    cfg = SplitterConfig()
    assert (cfg.invoice_sheet, cfg.detail_sheet) == ("Invoices", "Invoice_Details")
    assert (cfg.id_column, cfg.join_column) == ("IDINVC", "CNTITEM")
    assert (cfg.max_attempts, cfg.retry_delay) == (5, 1.0)


def test_output_name():
    cfg = SplitterConfig()
    assert cfg.output_name("P1") == "RL_NEW_PAYABLES_TLC_TM_P1.xls"
    assert cfg.output_name("P2") == "RL_NEW_PAYABLES_TLC_TM_P2.xls"


def test_configure_logging_accepts_unknown_level(monkeypatch):
    calls = {}
    monkeypatch.setattr(logging, "basicConfig", lambda **kw: calls.update(kw))
    configure_logging("chatty")
    assert calls["level"] == logging.INFO

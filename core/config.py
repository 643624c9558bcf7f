from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional


ENV_SOURCE_PATH   = "AP_SPLITTER_SOURCE_PATH"
ENV_OUTPUT_DIR    = "AP_SPLITTER_OUTPUT_DIR"
ENV_TEMPLATE_PATH = "AP_SPLITTER_TEMPLATE_PATH"
ENV_LOG_LEVEL     = "AP_SPLITTER_LOG_LEVEL"

DEFAULT_SOURCE_PATH = r"\\fs01\Accounting\AP\RL_NEW_PAYABLES_TLC_TM.XLS"
DEFAULT_OUTPUT_DIR  = r"\\fs01\Accounting\AP\TM_AP_EXPORT"
TEMPLATE_RELATIVE   = os.path.join("templates", "RL_NEW_PAYABLES_TLC_TM.XLS")

PROJECT_ROOT = Path(__file__).resolve().parent.parent

LOG_FORMAT = "%(asctime)s %(levelname)-7s %(name)s: %(message)s"


def _resolve_env_path(env_name: str, default: str, project_root: Optional[str] = None) -> str:
    """Env var wins (relative values resolve against project_root or cwd)."""
    env = os.getenv(env_name)
    if not env:
        return default
    p = Path(env)
    if not p.is_absolute():
        base = Path(project_root) if project_root else Path.cwd()
        p = base / p
    return str(p)


def resolve_source_path(project_root: Optional[str] = None) -> str:
    """Fallback source workbook read when nothing is uploaded.

    Priority:
    1) AP_SPLITTER_SOURCE_PATH env var (absolute or relative)
    2) The AP share default
    """
    return _resolve_env_path(ENV_SOURCE_PATH, DEFAULT_SOURCE_PATH, project_root)


def resolve_output_dir(project_root: Optional[str] = None) -> str:
    return _resolve_env_path(ENV_OUTPUT_DIR, DEFAULT_OUTPUT_DIR, project_root)


def resolve_template_path(project_root: Optional[str] = None) -> str:
    """Template workbook path.

    Priority:
    1) AP_SPLITTER_TEMPLATE_PATH env var (absolute or relative)
    2) templates/RL_NEW_PAYABLES_TLC_TM.XLS under the project root
    """
    root = project_root or str(PROJECT_ROOT)
    return _resolve_env_path(ENV_TEMPLATE_PATH, os.path.join(root, TEMPLATE_RELATIVE), project_root)


@dataclass
class SplitterConfig:
    source_path: str = DEFAULT_SOURCE_PATH
    output_dir: str = DEFAULT_OUTPUT_DIR
    template_path: str = os.path.join(str(PROJECT_ROOT), TEMPLATE_RELATIVE)
    invoice_sheet: str = "Invoices"
    detail_sheet: str = "Invoice_Details"
    id_column: str = "IDINVC"
    join_column: str = "CNTITEM"
    file_stem: str = "RL_NEW_PAYABLES_TLC_TM"
    max_attempts: int = 5
    retry_delay: float = 1.0
    log_level: str = "INFO"

    @classmethod
    def from_env(cls, project_root: Optional[str] = None) -> "SplitterConfig":
        return cls(
            source_path=resolve_source_path(project_root),
            output_dir=resolve_output_dir(project_root),
            template_path=resolve_template_path(project_root),
            log_level=(os.getenv(ENV_LOG_LEVEL) or "INFO").upper(),
        )

    def output_name(self, label: str) -> str:
        return f"{self.file_stem}_{label}.xls"


def configure_logging(level: str = "INFO") -> None:
    """Root logging setup for entry points. Core modules never call this."""
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format=LOG_FORMAT,
    )

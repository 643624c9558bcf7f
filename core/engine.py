"""
core/engine.py — The split pipeline.

    load source -> classify Invoices (P1 digits-only, P2 the rest)
                -> filter Invoice_Details by each group's CNTITEM set
                -> rebuild each group from a fresh template copy
                -> save each group with retry

Groups run one after the other. A failure in P2 leaves an already saved P1
on disk; there is no rollback across the two files.
"""
from __future__ import annotations

import logging
import os
import time
from typing import Callable, List, Optional

from .config import SplitterConfig
from .errors import AppError, SAVE_FAILED
from .io import Upload, load_source, read_template
from .models import Row, SplitReport, SplitResult, Workbook
from .rebuild import rebuild
from .rules import classify_rows, filter_details
from .writer import save_workbook_with_retry


logger = logging.getLogger(__name__)


def _ensure_output_dir(path: str) -> None:
    try:
        os.makedirs(path, exist_ok=True)
    except OSError as e:
        raise AppError(
            SAVE_FAILED,
            f"Could not create output folder: {e}",
            {"path": path},
        )


def build_and_save(
    label: str,
    invoice_rows: List[Row],
    detail_rows: List[Row],
    source: Workbook,
    output_dir: str,
    config: SplitterConfig,
    sleep: Callable[[float], None] = time.sleep,
) -> SplitResult:
    """Rebuild one group against a fresh template read and save it."""
    template = read_template(config.template_path)
    dest = rebuild(
        template,
        {
            config.invoice_sheet: invoice_rows,
            config.detail_sheet: detail_rows,
        },
        source,
    )

    path = os.path.join(output_dir, config.output_name(label))
    save_workbook_with_retry(
        dest, path,
        max_attempts=config.max_attempts,
        retry_delay=config.retry_delay,
        sleep=sleep,
    )
    logger.info(
        "Wrote %s: %d invoices, %d detail rows",
        path, len(invoice_rows) - 1, len(detail_rows) - 1,
    )
    return SplitResult(
        label=label,
        path=path,
        invoice_rows=len(invoice_rows) - 1,
        detail_rows=len(detail_rows) - 1,
    )


def process(
    uploaded: Optional[Upload] = None,
    dest_folder: Optional[str] = None,
    config: Optional[SplitterConfig] = None,
    sleep: Callable[[float], None] = time.sleep,
) -> SplitReport:
    """
    Split the source workbook into <stem>_P1.xls and <stem>_P2.xls.

    uploaded:    bytes or a binary stream; None falls back to config.source_path.
    dest_folder: output folder; blank falls back to config.output_dir.

    Raises AppError on any fatal condition.
    """
    cfg = config or SplitterConfig.from_env()
    output_dir = dest_folder if (dest_folder or "").strip() else cfg.output_dir
    _ensure_output_dir(output_dir)

    source = load_source(uploaded, cfg.source_path)

    inv_sheet = source.sheet(cfg.invoice_sheet)
    det_sheet = source.sheet(cfg.detail_sheet)
    inv_hdr = inv_sheet.header
    det_hdr = det_sheet.header

    inv_p1, keys_p1 = classify_rows(inv_sheet, inv_hdr, True, cfg.id_column, cfg.join_column)
    inv_p2, keys_p2 = classify_rows(inv_sheet, inv_hdr, False, cfg.id_column, cfg.join_column)

    det_p1 = filter_details(det_sheet, det_hdr, keys_p1, cfg.join_column)
    det_p2 = filter_details(det_sheet, det_hdr, keys_p2, cfg.join_column)

    logger.info(
        "Split %d invoices into P1=%d / P2=%d",
        len(inv_sheet.data_rows()), len(inv_p1) - 1, len(inv_p2) - 1,
    )

    report = SplitReport(
        source="<upload>" if uploaded is not None else cfg.source_path,
        output_dir=output_dir,
    )
    report.results.append(build_and_save("P1", inv_p1, det_p1, source, output_dir, cfg, sleep))
    report.results.append(build_and_save("P2", inv_p2, det_p2, source, output_dir, cfg, sleep))
    return report

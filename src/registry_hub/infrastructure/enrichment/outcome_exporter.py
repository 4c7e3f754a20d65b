"""
CSV export of crawl outcomes that need a manual look.

Tasks ending in ``extraction_failed`` or ``failed`` are written with their
error and page-text snapshot so markup drift can be diagnosed offline.
"""

import csv
import logging
import uuid
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional

from registry_hub.domain.enrichment.observability import CrawlStats, TaskOutcome

logger = logging.getLogger(__name__)


def write_problem_outcomes_csv(
    stats: CrawlStats,
    output_dir: str = "logs/",
) -> Optional[Path]:
    """
    Write problem outcomes of a crawl run to a timestamped CSV file.

    Returns:
        Path to the created file, or None if every task ended cleanly

    Raises:
        OSError: If directory creation or file writing fails
    """
    outcomes = stats.problem_outcomes()
    if not outcomes:
        logger.info("No problem crawl outcomes to export")
        return None

    output_path = Path(output_dir)
    output_path.mkdir(parents=True, exist_ok=True)

    timestamp = datetime.now(timezone.utc).strftime("%Y%m%d_%H%M%S")
    suffix = uuid.uuid4().hex[:8]
    filepath = output_path / f"crawl_outcomes_{timestamp}_{suffix}.csv"

    with filepath.open("w", newline="", encoding="utf-8") as f:
        writer = csv.writer(f)
        writer.writerow(TaskOutcome.csv_headers())
        writer.writerows(outcome.to_csv_row() for outcome in outcomes)

    logger.info(
        "Exported crawl outcomes to CSV",
        extra={"filepath": str(filepath), "count": len(outcomes)},
    )
    return filepath

#!/usr/bin/env python3
"""Entry point: seed the store from YAML, batch-screen every job, write reports."""
from __future__ import annotations

import sys
from pathlib import Path

from resume_screener.config import CONFIG_DIR
from resume_screener.log import get_logger

log = get_logger(__name__)

DEFAULT_SEED: Path = CONFIG_DIR / "seed.example.yaml"


def _seed_path(argv: list[str]) -> Path | None:
    args = [a for a in argv[1:] if not a.startswith("--")]
    path = Path(args[0]) if args else DEFAULT_SEED
    if not path.exists():
        print()
        print(f"  Seed file not found: {path}")
        print("  Usage: python run_screening.py [seed.yaml]")
        print()
        return None
    return path


if __name__ == "__main__":
    seed = _seed_path(sys.argv)
    if seed is None:
        sys.exit(1)

    from resume_screener.errors import ConfigurationError
    from resume_screener.runner import run

    try:
        result = run(seed, write_report="--no-report" not in sys.argv)
    except ConfigurationError as exc:
        log.error("Configuration error: %s", exc)
        sys.exit(2)
    log.info("Run complete.")
    for job in result["jobs"]:
        log.info(
            "  [%d] %s: %d/%d screened, average %.1f",
            job["job_id"], job["title"], job["screened"], job["applications"], job["average_score"],
        )
        if job["report_path"]:
            log.info("  Report: %s", job["report_path"])
    if result["failed"]:
        log.warning("  %d application(s) could not be screened", result["failed"])

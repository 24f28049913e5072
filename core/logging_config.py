from pathlib import Path
import logging
import os
import sys
from typing import Optional
from datetime import datetime

from core.config import get_config_dir, get_section


def setup_logging(logs_dir: Optional[str | Path] = None, log_file_name: Optional[str] = None) -> logging.Logger:
    """Configure root logging to stderr and a file under `logs_dir`.

    Idempotent: calling multiple times won't add duplicate handlers.
    stdout is left untouched because the stdio transport speaks JSON-RPC over it.
    Defaults come from the `logging` section of config.yaml; MCP_LOG_DIR overrides the directory.
    A relative directory is resolved against the directory of the config file in use.
    Returns a module-level logger for callers to use.
    """
    settings = get_section("logging")
    level = logging.getLevelName(str(settings.get("level", "INFO")).upper())
    if not isinstance(level, int):
        level = logging.INFO

    if logs_dir is None:
        logs_dir = os.getenv("MCP_LOG_DIR") or settings.get("dir") or "logs"
    logs_dir = Path(logs_dir)
    if not logs_dir.is_absolute():
        logs_dir = Path(get_config_dir()) / logs_dir
    if log_file_name is None:
        log_file_name = settings.get("file_name", "server.log")

    # Add timestamp to the logfile name so each run writes to a timestamped file
    timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
    base = Path(log_file_name).stem
    ext = Path(log_file_name).suffix or ".log"
    log_file = logs_dir / f"{base}_{timestamp}{ext}"

    root_logger = logging.getLogger()
    root_logger.setLevel(level)

    # formatter used by both handlers
    formatter = logging.Formatter("%(asctime)s %(levelname)s %(name)s %(message)s")

    file_handler_exists = any(
        isinstance(h, logging.FileHandler) and Path(h.baseFilename).resolve().parent == logs_dir.resolve()
        for h in root_logger.handlers
    )
    if not file_handler_exists:
        try:
            logs_dir.mkdir(parents=True, exist_ok=True)
            fh = logging.FileHandler(log_file, encoding="utf-8")
            fh.setFormatter(formatter)
            fh.setLevel(level)
            root_logger.addHandler(fh)
        except OSError as e:
            # read-only checkouts still get stderr logging
            sys.stderr.write(f"Could not open log file {log_file}: {e}\n")

    stream_stderr_exists = any(
        type(h) is logging.StreamHandler and getattr(h, "stream", None) is sys.stderr
        for h in root_logger.handlers
    )
    if not stream_stderr_exists:
        sh = logging.StreamHandler(sys.stderr)
        sh.setFormatter(formatter)
        sh.setLevel(level)
        root_logger.addHandler(sh)

    return logging.getLogger(__name__)


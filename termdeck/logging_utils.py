"""
Logging Utilities for termdeck

The terminal belongs to the slides, so diagnostics go to a log file.
Evaluations are additionally recorded in a text log and a JSONL event log.

Author: termdeck contributors | 2026-10-19
"""

import json
import logging
import re
from datetime import datetime, timezone
from enum import Enum
from pathlib import Path
from typing import Any, Dict, Optional

from termdeck.models import CodeBlock, EvaluationResult

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


class LogLevel(str, Enum):
    """Log levels for the evaluation log."""
    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"


# Patterns for secret masking (environment variables, tokens, keys)
SECRET_PATTERNS = [
    (re.compile(r"(API_KEY|TOKEN|SECRET|PASSWORD|PASS|AUTH)[=:]\s*['\"]?([^'\"\ \n]+)", re.I), r"\1=***"),
    (re.compile(r"(Bearer|token)\s+([a-zA-Z0-9_\-\.]+)", re.I), r"\1 ***"),
    (re.compile(r"-----BEGIN [A-Z ]+-----.*?-----END [A-Z ]+-----", re.DOTALL), "*** SSH/PGP KEY ***"),
]


def mask_secrets(text: str) -> str:
    """
    Mask secrets in text before logging.

    Args:
        text: Raw text that may contain secrets

    Returns:
        Text with secrets replaced by ***
    """
    masked = text
    for pattern, replacement in SECRET_PATTERNS:
        masked = pattern.sub(replacement, masked)
    return masked


def setup_logging(
    level: str = "WARNING",
    log_dir: Optional[Path] = None,
    log_file: str = "termdeck.log",
) -> Optional[Path]:
    """
    Configure the root logger.

    With *log_dir* set, records go to ``log_dir/log_file``; otherwise
    nothing is attached beyond a NullHandler so the slides stay clean.

    Returns:
        Path of the log file, if any
    """
    root = logging.getLogger()
    root.setLevel(getattr(logging, level.upper(), logging.WARNING))
    for handler in list(root.handlers):
        if getattr(handler, "_termdeck", False):
            root.removeHandler(handler)
            handler.close()

    path: Optional[Path] = None
    if log_dir is not None:
        Path(log_dir).mkdir(parents=True, exist_ok=True)
        path = Path(log_dir) / log_file
        handler = logging.FileHandler(path, encoding="utf-8")
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
    else:
        handler = logging.NullHandler()
    handler._termdeck = True
    root.addHandler(handler)
    return path


class EvaluationLog:
    """
    File-based record of code-block evaluations.

    Logs are written to:
    - {log_dir}/evaluations.log - Human-readable text log
    - {log_dir}/evaluations.jsonl - Structured JSONL log
    """

    def __init__(self, log_dir: Path, mask_secrets_enabled: bool = True):
        """
        Initialize evaluation log.

        Args:
            log_dir: Directory for log files
            mask_secrets_enabled: Whether to mask secrets in logs
        """
        self.log_dir = Path(log_dir)
        self.log_dir.mkdir(parents=True, exist_ok=True)
        self.mask_secrets_enabled = mask_secrets_enabled

        self.text_log = self.log_dir / "evaluations.log"
        self.json_log = self.log_dir / "evaluations.jsonl"

    def _mask_if_enabled(self, text: str) -> str:
        if self.mask_secrets_enabled:
            return mask_secrets(text)
        return text

    def log_text(self, line: str, level: LogLevel = LogLevel.INFO):
        """Append a timestamped line to the text log."""
        timestamp = datetime.now(timezone.utc).isoformat()
        with self.text_log.open("a", encoding="utf-8") as f:
            f.write(f"[{timestamp}] [{level.value}] {self._mask_if_enabled(line)}\n")

    def log_jsonl(self, event_type: str, data: Dict[str, Any], level: LogLevel = LogLevel.INFO):
        """Append a structured event to the JSONL log."""
        event = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": level.value,
            "type": event_type,
            "data": data,
        }
        event_str = self._mask_if_enabled(json.dumps(event))
        with self.json_log.open("a", encoding="utf-8") as f:
            f.write(event_str + "\n")

    def log_evaluation(self, block: CodeBlock, result: EvaluationResult):
        """
        Log one evaluation to both text and JSONL logs.

        Args:
            block: The evaluated code block
            result: Its outcome
        """
        level = LogLevel.INFO if result.success else LogLevel.ERROR
        status = "OK" if result.success else ("TIMEOUT" if result.timed_out else "FAILED")
        self.log_text(
            f"EVAL LANG={block.language or '-'} LINE={block.line} "
            f"STATUS={status} DURATION={result.duration * 1000:.1f}ms",
            level,
        )

        data = {
            "language": block.language,
            "line": block.line,
            "code": block.source[:1000],     # Truncate long blocks
        }
        data.update(result.to_dict())
        if data["output"]:
            data["output"] = data["output"][:1000]
        self.log_jsonl("evaluation", data, level)

"""
termdeck Configuration
======================

Loads presentation settings from termdeck.yaml with environment variable
overrides.

Author: termdeck contributors | 2026-10-19
"""

import os
import yaml
import logging
from pathlib import Path
from dataclasses import dataclass, field
from typing import Optional, Dict, Any, List

logger = logging.getLogger(__name__)

CONFIG_FILENAME = "termdeck.yaml"
VALID_BACKENDS = ("repl", "http", "none")


# =============================================================================
# Configuration Data Classes
# =============================================================================

@dataclass
class RenderConfig:
    """Terminal rendering configuration."""
    min_width: int = 20             # fallback for degenerate terminal widths
    code_margin: int = 4
    color: bool = True
    show_status: bool = True


@dataclass
class EvaluatorConfig:
    """Code-block evaluator configuration."""
    backend: str = "repl"           # repl | http | none
    command: List[str] = field(default_factory=list)   # empty -> bundled Python driver
    url: str = ""                   # http backend endpoint
    timeout: float = 10.0           # seconds


@dataclass
class LoggingConfig:
    """Logging configuration."""
    level: str = "WARNING"
    log_dir: str = ".termdeck_logs"
    log_file: str = "termdeck.log"
    eval_log: bool = True


@dataclass
class TermdeckConfig:
    """Root configuration container."""
    render: RenderConfig = field(default_factory=RenderConfig)
    evaluator: EvaluatorConfig = field(default_factory=EvaluatorConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "render": {
                "min_width": self.render.min_width,
                "code_margin": self.render.code_margin,
                "color": self.render.color,
                "show_status": self.render.show_status,
            },
            "evaluator": {
                "backend": self.evaluator.backend,
                "command": list(self.evaluator.command),
                "url": self.evaluator.url,
                "timeout": self.evaluator.timeout,
            },
            "logging": {
                "level": self.logging.level,
                "log_dir": self.logging.log_dir,
                "log_file": self.logging.log_file,
                "eval_log": self.logging.eval_log,
            },
        }


# =============================================================================
# Configuration Loader
# =============================================================================

def find_config_file(start_path: Optional[Path] = None) -> Optional[Path]:
    """
    Find termdeck.yaml by searching upward from start_path.

    Search order:
    1. start_path / termdeck.yaml
    2. start_path / .termdeck / termdeck.yaml
    3. Parent directories (recursive)
    4. ~/.config/termdeck/termdeck.yaml

    Args:
        start_path: Starting directory (defaults to cwd)

    Returns:
        Path to config file or None if not found
    """
    if start_path is None:
        start_path = Path.cwd()

    current = Path(start_path).resolve()
    for _ in range(10):  # Max 10 levels up
        for candidate in (current / CONFIG_FILENAME, current / ".termdeck" / CONFIG_FILENAME):
            if candidate.exists():
                return candidate
        parent = current.parent
        if parent == current:
            break
        current = parent

    user_config = Path.home() / ".config" / "termdeck" / CONFIG_FILENAME
    if user_config.exists():
        return user_config

    return None


def load_config(config_path: Optional[Path] = None) -> TermdeckConfig:
    """
    Load configuration from YAML file with environment variable overrides.

    Environment variables override config file values:
    - TERMDECK_EVALUATOR -> evaluator.backend
    - TERMDECK_EVAL_TIMEOUT -> evaluator.timeout
    - TERMDECK_EVAL_URL -> evaluator.url
    - TERMDECK_LOG_LEVEL -> logging.level
    - NO_COLOR -> render.color = False

    Args:
        config_path: Path to config file (auto-detected if None)

    Returns:
        TermdeckConfig instance

    Raises:
        ValueError: the resulting configuration is invalid
    """
    config = TermdeckConfig()

    if config_path is None:
        config_path = find_config_file()

    if config_path and Path(config_path).exists():
        logger.info(f"Loading config from: {config_path}")
        try:
            with open(config_path, "r", encoding="utf-8") as f:
                data = yaml.safe_load(f) or {}
            config = _parse_config_dict(data)
        except (yaml.YAMLError, AttributeError, TypeError) as e:
            logger.warning(f"Failed to load config: {e}, using defaults")
    else:
        logger.info("No config file found, using defaults")

    config = _apply_env_overrides(config)
    _validate_config(config)
    return config


def _parse_config_dict(data: Dict[str, Any]) -> TermdeckConfig:
    """Parse configuration dictionary into TermdeckConfig."""
    config = TermdeckConfig()

    if "render" in data:
        render = data["render"]
        config.render = RenderConfig(
            min_width=int(render.get("min_width", config.render.min_width)),
            code_margin=int(render.get("code_margin", config.render.code_margin)),
            color=bool(render.get("color", config.render.color)),
            show_status=bool(render.get("show_status", config.render.show_status)),
        )

    if "evaluator" in data:
        ev = data["evaluator"]
        command = ev.get("command", config.evaluator.command) or []
        if isinstance(command, str):
            command = command.split()
        config.evaluator = EvaluatorConfig(
            backend=ev.get("backend", config.evaluator.backend),
            command=list(command),
            url=ev.get("url", config.evaluator.url) or "",
            timeout=float(ev.get("timeout", config.evaluator.timeout)),
        )

    if "logging" in data:
        log = data["logging"]
        config.logging = LoggingConfig(
            level=log.get("level", config.logging.level),
            log_dir=log.get("log_dir", config.logging.log_dir),
            log_file=log.get("log_file", config.logging.log_file),
            eval_log=bool(log.get("eval_log", config.logging.eval_log)),
        )

    return config


def _apply_env_overrides(config: TermdeckConfig) -> TermdeckConfig:
    """Apply environment variable overrides to config."""
    if os.environ.get("TERMDECK_EVALUATOR"):
        config.evaluator.backend = os.environ["TERMDECK_EVALUATOR"]

    if os.environ.get("TERMDECK_EVAL_TIMEOUT"):
        try:
            config.evaluator.timeout = float(os.environ["TERMDECK_EVAL_TIMEOUT"])
        except ValueError:
            logger.warning(f"Ignoring invalid TERMDECK_EVAL_TIMEOUT: {os.environ['TERMDECK_EVAL_TIMEOUT']}")

    if os.environ.get("TERMDECK_EVAL_URL"):
        config.evaluator.url = os.environ["TERMDECK_EVAL_URL"]

    if os.environ.get("TERMDECK_LOG_LEVEL"):
        config.logging.level = os.environ["TERMDECK_LOG_LEVEL"].upper()

    # https://no-color.org: any non-empty value disables color
    if os.environ.get("NO_COLOR"):
        config.render.color = False

    return config


def _validate_config(config: TermdeckConfig) -> None:
    """Validate configuration values."""
    if config.evaluator.backend not in VALID_BACKENDS:
        raise ValueError(
            f"Invalid evaluator backend {config.evaluator.backend!r}, must be one of {VALID_BACKENDS}"
        )
    if config.evaluator.timeout <= 0:
        raise ValueError(f"evaluator.timeout must be positive, got {config.evaluator.timeout}")
    if config.render.min_width < 10:
        raise ValueError(f"render.min_width must be at least 10, got {config.render.min_width}")
    if config.render.code_margin < 0:
        raise ValueError(f"render.code_margin cannot be negative, got {config.render.code_margin}")
    if config.logging.level.upper() not in ("DEBUG", "INFO", "WARNING", "ERROR"):
        logger.warning(f"Unknown log level {config.logging.level!r}, using WARNING")
        config.logging.level = "WARNING"

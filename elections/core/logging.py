"""Logging utilities."""
from __future__ import annotations

import logging.config
from pathlib import Path

import yaml

_CONFIG_PATH = Path(__file__).resolve().parent / "../.." / "configs" / "logging.yaml"


def configure_logging(config_path: Path | None = None) -> None:
    """Configure logging from the YAML configuration file if present."""
    path = config_path or _CONFIG_PATH
    if path.exists():
        with path.open("r", encoding="utf-8") as config_file:
            logging.config.dictConfig(yaml.safe_load(config_file))
    else:
        logging.basicConfig(level=logging.INFO)


def mask_email(email: str | None) -> str:
    """Return ``email`` with the local part hidden, e.g. ``j***@unb.ca``."""
    if not email:
        return "***"
    name, _, domain = email.partition("@")
    hidden = name[0] + "***" if name else "***"
    return f"{hidden}@{domain}" if domain else "***@***"


__all__ = ["configure_logging", "mask_email"]

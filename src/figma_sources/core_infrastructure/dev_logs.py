from __future__ import annotations

import json
import logging
import os
from pathlib import Path
from typing import Any

from pydantic import BaseModel

from figma_config.settings import dev_mode


logger = logging.getLogger(__name__)

LOGS_DIR = "logs"


def write_dev_log(name: str, value: Any) -> None:
    """Dump a payload to ./logs/<name> in development mode. Best effort, never raises."""
    if not dev_mode():
        return

    try:
        cwd = Path.cwd()
        if not os.access(cwd, os.W_OK):
            logger.info("Failed to write logs: %s is not writable", cwd)
            return

        logs_dir = cwd / LOGS_DIR
        logs_dir.mkdir(exist_ok=True)
        if isinstance(value, BaseModel):
            value = value.model_dump(exclude_none=True)
        (logs_dir / name).write_text(json.dumps(value, indent=2, ensure_ascii=False), encoding="utf-8")
    except (OSError, TypeError, ValueError) as e:
        logger.debug("Failed to write logs: %s", e)

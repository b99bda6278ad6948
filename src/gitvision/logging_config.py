# Licensed under the Apache License, Version 2.0
import logging
import os
import sys
from typing import Optional

LOG_FORMAT = "%(asctime)s %(levelname)s %(threadName)s %(name)s: %(message)s"


def setup_logging(level: Optional[str] = None) -> None:
    """Configure root logging on stderr; an explicit `level` replaces any earlier setup."""
    level_name = (level or os.getenv("GITVISION_LOG_LEVEL", "INFO")).upper()
    numeric = getattr(logging, level_name, logging.INFO)
    logging.basicConfig(
        level=numeric,
        format=os.getenv("GITVISION_LOG_FORMAT", LOG_FORMAT),
        stream=sys.stderr,
        force=level is not None,
    )

"""Process-wide logging setup.

Call :func:`configure_logging` once from :func:`excelflow.app.create_app`.
Modules obtain loggers with ``logging.getLogger(__name__)``. The operation
log shown to users is a separate channel kept on the workflow state.
"""

import logging
import sys

from excelflow.core.config import Settings


def configure_logging(settings: Settings) -> None:
    logging.basicConfig(
        level=settings.log_level,
        format="%(asctime)s %(levelname)s %(name)s %(message)s",
        stream=sys.stdout,
    )
    logging.getLogger("excelflow").setLevel(settings.log_level)

    for name in ("uvicorn", "uvicorn.error", "uvicorn.access"):
        logging.getLogger(name).setLevel(settings.log_level)

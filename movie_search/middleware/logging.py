from fastapi import Request
import logging
import time
from typing import Callable, Optional
import os
import sys

LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'

logger = logging.getLogger(__name__)


def configure_logging(log_file: Optional[str] = None):
    """
    Configure root logging: stdout once per process, plus a file handler
    for each distinct log file asked for
    """
    logging.basicConfig(
        level=logging.INFO,
        format=LOG_FORMAT,
        handlers=[logging.StreamHandler(sys.stdout)],
    )
    if not log_file:
        return
    root = logging.getLogger()
    path = os.path.abspath(log_file)
    if any(isinstance(h, logging.FileHandler) and h.baseFilename == path for h in root.handlers):
        return
    handler = logging.FileHandler(log_file)
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    root.addHandler(handler)


async def logging_middleware(request: Request, call_next: Callable):
    start_time = time.time()

    # Log request
    logger.info(f"Request started: {request.method} {request.url.path}")
    if request.query_params:
        logger.info(f"Query params: {dict(request.query_params)}")

    try:
        response = await call_next(request)

        process_time = time.time() - start_time
        logger.info(
            f"Request completed: {request.method} {request.url.path} "
            f"- Status: {response.status_code} "
            f"- Processing Time: {process_time:.3f}s"
        )

        return response
    except Exception as e:
        logger.error(
            f"Request failed: {request.method} {request.url.path} "
            f"- Error: {str(e)}"
        )
        raise

# Request logging middleware

import time
import uuid
import logging
from fastapi import FastAPI, Request
from typing import Dict, Any

logger = logging.getLogger(__name__)

REQUEST_ID_HEADER = "X-Request-ID"

# polled by load balancers; logged at DEBUG only
QUIET_PATHS = {"/health"}


def setup_logging_middleware(app: FastAPI, config: Dict[str, Any]):
    """
    One line per request and one per response, tagged with a request id.
    A caller-supplied X-Request-ID is reused, otherwise a short id is generated.
    """

    @app.middleware("http")
    async def log_requests(request: Request, call_next):
        request_id = request.headers.get(REQUEST_ID_HEADER) or uuid.uuid4().hex[:8]
        level = logging.DEBUG if request.url.path in QUIET_PATHS else logging.INFO
        client = request.client.host if request.client else 'unknown'
        started = time.perf_counter()

        logger.log(level, f"[{request_id}] {request.method} {request.url.path} from {client}")

        try:
            response = await call_next(request)
        except Exception as e:
            logger.error(
                f"[{request_id}] {request.method} {request.url.path} failed after "
                f"{time.perf_counter() - started:.3f}s: {str(e)}"
            )
            raise

        elapsed = time.perf_counter() - started
        if response.status_code >= 500:
            level = logging.ERROR
        elif response.status_code >= 400:
            level = max(level, logging.WARNING)
        logger.log(level, f"[{request_id}] {response.status_code} in {elapsed:.3f}s")

        response.headers[REQUEST_ID_HEADER] = request_id
        return response

# CORS middleware, driven by the cors config section

import logging
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from typing import Dict, Any, List

logger = logging.getLogger(__name__)

LOCAL_FRONTEND_ORIGINS = ["http://localhost:3000", "http://127.0.0.1:3000"]


def resolve_allowed_origins(config: Dict[str, Any]) -> List[str]:
    """
    Origins from cors.allowed_origins. Entries whose ${ENV} placeholder was
    never filled in are dropped. With nothing configured, debug builds fall
    back to the local frontend dev server and other builds allow no origin.
    """
    configured = config.get('cors', {}).get('allowed_origins') or []

    origins = []
    for origin in configured:
        if not origin or '${' in origin:
            logger.warning(f"Ignoring unresolved CORS origin {origin!r}")
            continue
        origins.append(origin.rstrip('/'))

    if not origins and config.get('app', {}).get('debug', False):
        return list(LOCAL_FRONTEND_ORIGINS)

    return origins


def setup_cors_middleware(app: FastAPI, config: Dict[str, Any]):
    cors_config = config.get('cors', {})
    origins = resolve_allowed_origins(config)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=origins,
        allow_credentials=cors_config.get('allow_credentials', True),
        allow_methods=cors_config.get('allowed_methods', ["GET", "POST", "PUT", "DELETE"]),
        allow_headers=cors_config.get('allowed_headers', ["Authorization", "Content-Type"]),
        expose_headers=["X-Request-ID"],
    )
    logger.info(f"CORS origins: {', '.join(origins) or 'none'}")

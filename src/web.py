# ABOUTME: ASGI web entry point for the place and weather gateway.
# ABOUTME: Serves the agent chat UI via agent.to_web(), wrapped by the geocoding HTTP API middleware.

import logging

from src.agent import agent
from src.config import Settings, configure_logging
from src.deps import create_deps
from src.http_api import GeocodeApiMiddleware

settings = Settings.from_env()
configure_logging(settings.log_level)

logger = logging.getLogger(__name__)

deps = create_deps(settings)

_inner_app = agent.to_web(deps=deps)

app = GeocodeApiMiddleware(_inner_app, deps)

logger.info("Gateway ready (gazetteer: %s)", settings.gazetteer_path)

# python
"""goldmine_connect package"""
__version__ = "0.2"

from goldmine_connect.env import load_env

# Load .env values at import time so the config loader sees them in os.environ.
load_env()

from goldmine_connect.config import SessionConfig, load_config  # noqa: E402
from goldmine_connect.relay import (  # noqa: E402
    CloseReason,
    RelayOrchestrator,
    SessionResult,
    SessionState,
    run_session,
)

__all__ = [
    "CloseReason",
    "RelayOrchestrator",
    "SessionConfig",
    "SessionResult",
    "SessionState",
    "load_config",
    "run_session",
]

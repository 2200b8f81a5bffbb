"""
Utilities: structured logging, fixed-interval polling and hex validation.
"""

from storagehub_e2e.utils.logging import configure_logging, get_logger, set_level
from storagehub_e2e.utils.polling import PollConfig, poll_until
from storagehub_e2e.utils.validation import (
    same_hex,
    to_bytes32,
    to_hex,
    validate_endpoint_url,
)

__all__ = [
    # Logging
    "get_logger",
    "configure_logging",
    "set_level",
    # Polling
    "PollConfig",
    "poll_until",
    # Validation
    "to_bytes32",
    "to_hex",
    "same_hex",
    "validate_endpoint_url",
]

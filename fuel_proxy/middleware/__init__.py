"""
ASGI middleware: request ids, access logging, problem+json error mapping.
"""

from .errors import PROBLEM_CT, install_error_handlers  # noqa: F401
from .logging import AccessLogMiddleware, install_access_log_middleware  # noqa: F401
from .request_id import (RequestIdMiddleware,  # noqa: F401
                         install_request_id_middleware)

"""Shared helpers below every other tubedrop sub-package.

    compute         clamp / lerp, ties-up rounding, mm <-> px <-> cm, toFixed-style formatting
    fs              atomic schedule writes, YAML loading
    logging_config  handler setup and contextual log fields for entrypoints

Nothing in here imports from path, sampling, synthesis, segments,
compiler, export or configs.

    from tubedrop.utils import fs
    from tubedrop.utils.logging_config import setup_logging, get_logger
"""

from . import compute
from . import fs
from . import logging_config

from .logging_config import get_logger, push_context, setup_logging

__all__ = [
    'compute',
    'fs',
    'logging_config',
    'get_logger',
    'push_context',
    'setup_logging',
]

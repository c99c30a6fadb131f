"""Cross-cutting utilities (lowest dependency layer).

This package provides shared primitives for:
    - Config validation (validators)
    - Pixel/normalized conversions and row chunking (compute)
    - Atomic I/O and the PNG image sink (fs)
    - Window preview sink (preview)
    - Hashing for provenance (hashing)
    - Wall-clock timing (profiler)
    - Unified logging (logging_config)

No module in utils/ may import from blob_renderer/.

Convenience imports:
    from mstblob.utils import fs, validators
    from mstblob.utils.logging_config import setup_logging, get_logger
"""

from . import compute
from . import fs
from . import hashing
from . import logging_config
from . import profiler
from . import validators

from .logging_config import get_logger, push_context, setup_logging

__all__ = [
    'compute',
    'fs',
    'hashing',
    'logging_config',
    'profiler',
    'validators',
    'setup_logging',
    'get_logger',
    'push_context',
]

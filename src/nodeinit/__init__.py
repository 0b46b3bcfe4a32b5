"""Node bootstrap tools (SSH key + GitHub registration + environment setup)."""

import logging
from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("nodeinit")
except PackageNotFoundError:
    __version__ = "0.0.0.dev"

logging.getLogger("nodeinit").addHandler(logging.NullHandler())

"""Configuration package for the vault.

Everything lives in `config.settings`; it is re-exported here so that
`from config import DEFAULT_ITERATIONS` keeps working for scripts.
"""

from .settings import *  # noqa: F401,F403
from .settings import __all__  # noqa: F401

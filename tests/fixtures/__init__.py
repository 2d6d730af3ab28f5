"""Shared pytest fixtures and helpers."""

from .api import *  # noqa: F401,F403
from .core import *  # noqa: F401,F403
from .discord import *  # noqa: F401,F403
from .services import *  # noqa: F401,F403

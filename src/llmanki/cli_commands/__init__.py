"""CLI command modules for llmanki.

- shared.py: Common utilities (config/logger loading, console)
- analysis_handler.py: render, analyze and insights implementation
- analysis_commands.py / cache_commands.py / provider_commands.py: command registration
"""

from .analysis_handler import run_analyze, run_insights, run_render
from .shared import console, get_config_and_logger

__all__ = [
    "console",
    "get_config_and_logger",
    "run_analyze",
    "run_insights",
    "run_render",
]

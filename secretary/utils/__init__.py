"""
Utility modules - Shared utilities for the application

This module should NEVER import from the agents, ai, services or tools
packages to keep the import hierarchy acyclic.
"""

# ============================================
# CONFIGURATION
# ============================================
from .config import Config, ConfigDefaults, load_config, get_timezone

# ============================================
# LOGGING
# ============================================
from .logger import setup_logger, configure_from_config

# ============================================
# DATE/TIME RESOLUTION
# ============================================
from .datetime import (
    DateTimeResolver,
    ResolvedInstant,
    resolve,
    normalize_datetime_start,
    normalize_datetime_end,
    days_until_weekday,
)

# ============================================
# JSON / PERFORMANCE
# ============================================
from .json_utils import find_first_json_object, repair_json, loads_lenient
from .performance import PerformanceContext

__all__ = [
    'Config',
    'ConfigDefaults',
    'load_config',
    'get_timezone',
    'setup_logger',
    'configure_from_config',
    'DateTimeResolver',
    'ResolvedInstant',
    'resolve',
    'normalize_datetime_start',
    'normalize_datetime_end',
    'days_until_weekday',
    'find_first_json_object',
    'repair_json',
    'loads_lenient',
    'PerformanceContext',
]

"""Levelled console logging for the pipeline.

Usage::

    from topic_rag import logger
    logger.info("Collection created", "vector_store.ensure_collection")
"""

import os
import sys
from datetime import datetime

# Log levels
LEVEL_DEBUG = 10
LEVEL_INFO = 20
LEVEL_WARNING = 30
LEVEL_ERROR = 40
LEVEL_CRITICAL = 50

LEVEL_NAMES = {
    LEVEL_DEBUG: 'DEBUG',
    LEVEL_INFO: 'INFO',
    LEVEL_WARNING: 'WARNING',
    LEVEL_ERROR: 'ERROR',
    LEVEL_CRITICAL: 'CRITICAL'
}

LEVEL_BY_NAME = {name: level for level, name in LEVEL_NAMES.items()}

# ANSI colours for console output
LEVEL_COLORS = {
    LEVEL_DEBUG: '\033[36m',     # Cyan
    LEVEL_INFO: '\033[32m',      # Green
    LEVEL_WARNING: '\033[33m',   # Yellow
    LEVEL_ERROR: '\033[31m',     # Red
    LEVEL_CRITICAL: '\033[35m',  # Magenta
    'RESET': '\033[0m'
}

CURRENT_LEVEL = LEVEL_INFO


def colors_enabled():
    """Colour only interactive terminals, and never when NO_COLOR is set."""
    if os.environ.get('NO_COLOR') is not None:
        return False
    return hasattr(sys.stdout, 'isatty') and sys.stdout.isatty()


def set_level(level):
    global CURRENT_LEVEL
    if isinstance(level, str):
        level = LEVEL_BY_NAME.get(level.upper(), LEVEL_INFO)
    CURRENT_LEVEL = level
    debug(f"Log level set to {LEVEL_NAMES.get(level, 'UNKNOWN')}", "logger")


def get_level():
    return CURRENT_LEVEL


def log(level, message, module=None, use_color=True):
    if level < CURRENT_LEVEL:
        return

    timestamp = datetime.now().strftime('%Y-%m-%d %H:%M:%S.%f')[:-3]

    if module is None:
        frame = sys._getframe(2)  # caller of debug()/info()/...
        module = frame.f_globals.get('__name__', 'unknown')

    level_name = LEVEL_NAMES.get(level, 'UNKNOWN')

    if use_color and colors_enabled():
        color = LEVEL_COLORS.get(level, LEVEL_COLORS['RESET'])
        formatted_message = f"{timestamp} {color}[{level_name}]{LEVEL_COLORS['RESET']} [{module}] {message}"
    else:
        formatted_message = f"{timestamp} [{level_name}] [{module}] {message}"

    print(formatted_message)
    sys.stdout.flush()


def debug(message, module=None):
    log(LEVEL_DEBUG, message, module)


def info(message, module=None):
    log(LEVEL_INFO, message, module)


def warning(message, module=None):
    log(LEVEL_WARNING, message, module)


def error(message, module=None):
    log(LEVEL_ERROR, message, module)


def critical(message, module=None):
    log(LEVEL_CRITICAL, message, module)


def configure():
    """Read the level from LOG_LEVEL (defaults to INFO)."""
    set_level(os.environ.get('LOG_LEVEL', 'INFO'))


configure()

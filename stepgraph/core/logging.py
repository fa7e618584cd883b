# stepgraph/core/logging.py
import logging
import os
import sys
from datetime import datetime

_LOGGER_PREFIX = 'stepgraph'

# Module-level default log level, can be changed by set_default_level()
_default_level: int = logging.INFO

# Loggers handed out by get_logger(), by component name
_loggers: dict[str, logging.Logger] = {}


def _colors_enabled() -> bool:
    if os.environ.get('STEPGRAPH_FORCE_COLOR', '').lower() in ('1', 'true', 'yes'):
        return True
    if os.environ.get('NO_COLOR') is not None:
        return False
    return hasattr(sys.stdout, 'isatty') and sys.stdout.isatty()


class ColoredFormatter(logging.Formatter):
    """Formatter for stepgraph logging: `[time] [component] [LEVEL] message`.

    Colors follow STEPGRAPH_FORCE_COLOR / NO_COLOR / stdout being a TTY unless
    `use_colors` is given explicitly.
    """

    COLORS = {
        'RESET': '\033[0m',
        'LIGHT_BLUE': '\033[94m',
        'WHITE': '\033[97m',
        'GRAY': '\033[90m',
        'GREEN': '\033[92m',
        'YELLOW': '\033[93m',
        'RED': '\033[91m',
        'BRIGHT_RED': '\033[1;91m',
    }

    LEVEL_COLORS = {
        'DEBUG': 'GRAY',
        'INFO': 'GREEN',
        'WARNING': 'YELLOW',
        'ERROR': 'RED',
        'CRITICAL': 'BRIGHT_RED',
    }

    def __init__(self, use_colors: bool | None = None) -> None:
        super().__init__()
        self.use_colors = _colors_enabled() if use_colors is None else use_colors

    def _paint(self, color: str, text: str) -> str:
        if not self.use_colors:
            return text
        return f"{self.COLORS[color]}{text}{self.COLORS['RESET']}"

    def format(self, record: logging.LogRecord) -> str:
        time_str = datetime.fromtimestamp(record.created).strftime('%H:%M:%S')

        # 'stepgraph.validator' -> 'validator'
        component = record.name.rsplit('.', 1)[-1]

        # [validator] is the longest component tag
        component_padded = f'[{component}]'.ljust(14)
        level_padded = f'[{record.levelname}]'.ljust(10)
        level_color = self.LEVEL_COLORS.get(record.levelname, 'WHITE')

        formatted = (
            f"{self._paint('LIGHT_BLUE', f'[{time_str}]')} "
            f"{self._paint('WHITE', component_padded)}"
            f'{self._paint(level_color, level_padded)}'
            f"{self._paint('WHITE', record.getMessage())}"
        )

        if record.exc_info:
            formatted += '\n' + self.formatException(record.exc_info)

        return formatted


def set_default_level(level: int) -> None:
    """Set the log level of every stepgraph logger, existing and future."""
    global _default_level
    _default_level = level
    for logger in _loggers.values():
        logger.setLevel(level)
        for handler in logger.handlers:
            handler.setLevel(level)


def get_logger(component_name: str) -> logging.Logger:
    """Get the logger for a stepgraph component (builder, validator, registry, serde)."""
    existing = _loggers.get(component_name)
    if existing is not None:
        return existing

    logger = logging.getLogger(f'{_LOGGER_PREFIX}.{component_name}')
    if not logger.handlers:
        handler = logging.StreamHandler(sys.stdout)
        handler.setFormatter(ColoredFormatter())
        handler.setLevel(_default_level)
        logger.addHandler(handler)
        logger.setLevel(_default_level)

        # Prevent duplicate logs from parent loggers
        logger.propagate = False

    _loggers[component_name] = logger
    return logger

import logging
import logging.handlers
import sys
import os
from typing import Any, Dict, Iterable, List

from .config.settings import settings
from .ipp.ipp_parser import IPPMessage, status_name

# Global logger instance
logger = logging.getLogger(__name__)

def setup_logging(log_level: str = None, log_file: str = None) -> logging.Logger:

    # Determine log level
    level = log_level or settings.LOG_LEVEL
    numeric_level = getattr(logging, level.upper(), logging.INFO)

    # Create formatter
    formatter = logging.Formatter(
        '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )

    # Configure root logger
    root_logger = logging.getLogger()
    root_logger.setLevel(numeric_level)

    # Clear existing handlers
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    # Console handler on stderr; stdout carries the attribute dump
    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setFormatter(formatter)
    root_logger.addHandler(console_handler)

    # File handler if specified
    file_path = log_file or settings.LOG_FILE
    if file_path:
        try:
            directory = os.path.dirname(file_path)
            if directory:
                os.makedirs(directory, exist_ok=True)

            # Rotating file handler to prevent huge log files
            file_handler = logging.handlers.RotatingFileHandler(
                file_path, maxBytes=10*1024*1024, backupCount=5
            )
            file_handler.setFormatter(formatter)
            root_logger.addHandler(file_handler)

            logger.info(f"Logging to file: {file_path}")

        except OSError as e:
            logger.warning(f"Failed to setup file logging: {e}")

    # Keep urllib3 connection chatter out of debug output
    logging.getLogger('urllib3').setLevel(max(numeric_level, logging.INFO))

    logger.debug(f"Logging initialized - Level: {level}")
    return root_logger

def validate_configuration() -> bool:
    errors = settings.validate_config()

    if errors:
        logger.error("Configuration validation failed:")
        for error in errors:
            logger.error(f"  - {error}")
        return False

    logger.debug("Configuration validation passed")
    return True

# Converts a key=value token into a typed Python value: int, bool, list or keyword
def parse_attribute_value(raw: str) -> Any:
    if ',' in raw:
        values = [parse_attribute_value(part) for part in raw.split(',') if part]
        if not values:
            raise ValueError(f"No values in list '{raw}'")
        return values
    lowered = raw.lower()
    if lowered in ('true', 'false'):
        return lowered == 'true'
    try:
        return int(raw)
    except ValueError:
        return raw

# Parses passthrough arguments like media=iso_a4_210x297mm copies=2
def parse_attribute_pairs(pairs: Iterable[str]) -> Dict[str, Any]:
    attributes: Dict[str, Any] = {}
    for pair in pairs:
        name, sep, raw = pair.partition('=')
        name = name.strip()
        if not sep or not name:
            raise ValueError(f"Expected key=value, got '{pair}'")
        attributes[name] = parse_attribute_value(raw.strip())
    return attributes

# Human readable dump of every group and attribute of a message
def format_attribute_groups(message: IPPMessage) -> List[str]:
    lines = []
    for group in message.groups:
        lines.append(f"Group: {group.tag.name}")
        for attribute in group.attributes:
            lines.append(f"  {attribute.name}: {attribute.value.to_python()!r}")
    return lines

def format_status(message: IPPMessage) -> str:
    text = f"IPP status code: 0x{message.status_code:04x} ({status_name(message.status_code)})"
    if message.status_message:
        text += f" - {message.status_message}"
    return text

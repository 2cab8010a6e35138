"""Logging configuration with pretty console formatting for chatgraph."""

import logging
from typing import Optional, Dict, Any
from enum import Enum, IntEnum
from datetime import datetime

# ANSI Color Codes
class Colors:
    """ANSI color codes for pretty terminal output."""
    HEADER = '\033[95m'      # Pink
    INFO = '\033[94m'        # Blue
    SUCCESS = '\033[92m'     # Green
    WARNING = '\033[93m'     # Yellow
    ERROR = '\033[91m'       # Red
    RESET = '\033[0m'        # Reset
    BOLD = '\033[1m'         # Bold
    DIM = '\033[2m'          # Dim

PLAIN_FORMAT = (
    "%(asctime)s │ %(levelname)-8s │ %(name)s │ %(message)s"
)

DETAILED_FORMAT = (
    f"{Colors.DIM}%(asctime)s{Colors.RESET} │ "
    f"%(colored_level)-30s │ "
    f"{Colors.DIM}%(name)s{Colors.RESET} │ "
    f"%(message)s"
)

class PrettyFormatter(logging.Formatter):
    """Formatter that colors the level name and separates warnings."""

    level_colors = {
        'DEBUG': Colors.DIM,
        'VERBOSE': Colors.DIM,
        'INFO': Colors.INFO,
        'AGENT': Colors.SUCCESS,
        'TOOL': Colors.HEADER,
        'WARNING': Colors.WARNING,
        'ERROR': Colors.ERROR,
        'CRITICAL': Colors.ERROR + Colors.BOLD,
    }

    def format(self, record: logging.LogRecord) -> str:
        color = self.level_colors.get(record.levelname, Colors.RESET)
        record.colored_level = f"{color}{record.levelname}{Colors.RESET}"
        message = super().format(record)
        if record.levelno >= logging.WARNING:
            message = f"{message}\n{Colors.DIM}{'─' * 80}{Colors.RESET}"
        return message

    def formatTime(self, record: logging.LogRecord, datefmt: Optional[str] = None) -> str:
        return datetime.fromtimestamp(record.created).strftime(datefmt or '%H:%M:%S')

class LogComponent(str, Enum):
    """Components that can be logged."""
    ENGINE = "chatgraph.core.graph"
    NODES = "chatgraph.core.graph.nodes"
    CHECKPOINT = "chatgraph.core.graph.checkpoint"
    TOOLS = "chatgraph.core.tools"
    AGENT = "chatgraph.core.agent"
    DATABASE = "chatgraph.core.database"
    RUNTIME = "chatgraph.core.runtime"
    API = "chatgraph.api"

class LogLevel(IntEnum):
    """Log levels mapped to logging module levels."""
    DEBUG = logging.DEBUG
    VERBOSE = 15  # Between DEBUG and INFO
    INFO = logging.INFO
    AGENT = 25    # Model responses
    TOOL = 26     # Tool calls
    WARNING = logging.WARNING
    ERROR = logging.ERROR
    CRITICAL = logging.CRITICAL

    @classmethod
    def from_name(cls, name: str) -> "LogLevel":
        """Resolve a level from names like 'info' or 'warn'."""
        normalized = name.strip().upper()
        if normalized == "WARN":
            normalized = "WARNING"
        try:
            return cls[normalized]
        except KeyError:
            raise ValueError(f"Unknown log level: {name}") from None

# Register custom log levels
logging.addLevelName(LogLevel.VERBOSE, "VERBOSE")
logging.addLevelName(LogLevel.AGENT, "AGENT")
logging.addLevelName(LogLevel.TOOL, "TOOL")

def configure_logging(
    default_level: LogLevel = LogLevel.INFO,
    component_levels: Optional[Dict[LogComponent, LogLevel]] = None,
    pretty: bool = True,
    log_file: Optional[str] = None
) -> None:
    """Configure root logging with pretty console output and an optional file."""
    handlers = []

    console_handler = logging.StreamHandler()
    console_handler.setFormatter(
        PrettyFormatter(DETAILED_FORMAT) if pretty else logging.Formatter(PLAIN_FORMAT)
    )
    handlers.append(console_handler)

    # File output never carries color codes
    if log_file:
        file_handler = logging.FileHandler(log_file)
        file_handler.setFormatter(logging.Formatter(PLAIN_FORMAT))
        handlers.append(file_handler)

    root_logger = logging.getLogger()
    root_logger.setLevel(default_level.value)

    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    for handler in handlers:
        root_logger.addHandler(handler)

    if not component_levels:
        component_levels = {
            LogComponent.ENGINE: default_level,
            LogComponent.NODES: default_level,
            LogComponent.TOOLS: min(default_level, LogLevel.TOOL),
            LogComponent.AGENT: min(default_level, LogLevel.AGENT),
        }

    for component, level in component_levels.items():
        logging.getLogger(component.value).setLevel(level.value)

def get_logger(component: LogComponent) -> logging.Logger:
    """Get a logger for a specific component."""
    return logging.getLogger(component.value)

def log_agent(logger: logging.Logger, message: str) -> None:
    """Log a model response at AGENT level."""
    logger.log(LogLevel.AGENT, f"{Colors.SUCCESS}{message}{Colors.RESET}")

def log_tool(logger: logging.Logger, message: str) -> None:
    """Log a tool invocation at TOOL level."""
    logger.log(LogLevel.TOOL, f"{Colors.HEADER}{message}{Colors.RESET}")

def log_verbose(logger: logging.Logger, message: str) -> None:
    """Log a message at VERBOSE level."""
    if logger.isEnabledFor(LogLevel.VERBOSE):
        logger.log(LogLevel.VERBOSE, message)

def log_state(logger: logging.Logger, state: Dict[str, Any], prefix: str = "") -> None:
    """Log a state dictionary in a readable, indented format."""
    for key, value in state.items():
        if isinstance(value, dict):
            logger.debug(f"{prefix}{key}:")
            log_state(logger, value, prefix + "  ")
        else:
            logger.debug(f"{prefix}{key}: {value}")

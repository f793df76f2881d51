"""
Color utilities for txlens terminal output.

Provides ANSI color codes and small formatting helpers used by the CLI
and the log formatter.
"""

import os
import sys

# Check if colors are supported
SUPPORTS_COLOR = (
    hasattr(sys.stdout, 'isatty') and sys.stdout.isatty() and
    os.environ.get('TERM') != 'dumb' and
    not os.environ.get('NO_COLOR')
)


class Colors:
    """ANSI color codes for terminal output."""

    RED = '\033[31m'
    GREEN = '\033[32m'
    YELLOW = '\033[33m'
    BLUE = '\033[34m'
    MAGENTA = '\033[35m'
    CYAN = '\033[36m'

    BRIGHT_RED = '\033[91m'
    BRIGHT_GREEN = '\033[92m'
    BRIGHT_YELLOW = '\033[93m'
    BRIGHT_BLUE = '\033[94m'
    BRIGHT_MAGENTA = '\033[95m'
    BRIGHT_CYAN = '\033[96m'
    BRIGHT_WHITE = '\033[97m'

    BOLD = '\033[1m'
    DIM = '\033[2m'
    UNDERLINE = '\033[4m'

    RESET = '\033[0m'

    @classmethod
    def disable(cls):
        """Disable all colors."""
        for attr in dir(cls):
            if not attr.startswith('_') and attr.isupper():
                setattr(cls, attr, '')


# Disable colors if not supported
if not SUPPORTS_COLOR:
    Colors.disable()


def red(text: str) -> str:
    return f"{Colors.RED}{text}{Colors.RESET}"

def green(text: str) -> str:
    return f"{Colors.GREEN}{text}{Colors.RESET}"

def yellow(text: str) -> str:
    return f"{Colors.YELLOW}{text}{Colors.RESET}"

def cyan(text: str) -> str:
    return f"{Colors.CYAN}{text}{Colors.RESET}"

def bold(text: str) -> str:
    return f"{Colors.BOLD}{text}{Colors.RESET}"

def dim(text: str) -> str:
    return f"{Colors.DIM}{text}{Colors.RESET}"


# Semantic helpers
def error(text: str) -> str:
    """Format error text."""
    return f"{Colors.BRIGHT_RED}{text}{Colors.RESET}"

def success(text: str) -> str:
    """Format success text."""
    return f"{Colors.BRIGHT_GREEN}{text}{Colors.RESET}"

def warning(text: str) -> str:
    """Format warning text."""
    return f"{Colors.BRIGHT_YELLOW}{text}{Colors.RESET}"

def info(text: str) -> str:
    """Format info text."""
    return f"{Colors.BRIGHT_CYAN}{text}{Colors.RESET}"

def address(text: str) -> str:
    """Format Ethereum address."""
    return f"{Colors.BRIGHT_MAGENTA}{text}{Colors.RESET}"

def gas_value(gas: int) -> str:
    """Format gas value."""
    return f"{Colors.BRIGHT_GREEN}{gas:>9d}{Colors.RESET}"

def call_id(text: str) -> str:
    """Format a call frame id."""
    return f"{Colors.BRIGHT_BLUE}{text}{Colors.RESET}"

def bullet_point(text: str) -> str:
    return f"  {Colors.DIM}-{Colors.RESET} {text}"


SEVERITY_COLORS = {
    "CRITICAL": lambda: Colors.BOLD + Colors.BRIGHT_RED,
    "HIGH": lambda: Colors.BRIGHT_RED,
    "MEDIUM": lambda: Colors.BRIGHT_YELLOW,
    "LOW": lambda: Colors.DIM,
}


def severity(level: str) -> str:
    """Format a finding severity label."""
    color = SEVERITY_COLORS.get(level, lambda: '')()
    return f"{color}{level}{Colors.RESET}"

"""
CLI module for txlens commands.

This module provides the command-line interface for txlens:
analyze, analyze-file and decode-revert.
"""

from .main import main

__all__ = [
    'main',
    'analyze_command',
    'analyze_file_command',
    'decode_revert_command',
]

# Lazy imports to avoid circular dependencies
def analyze_command(args):
    """Execute the analyze command."""
    from .analyze import analyze_command as _analyze_command
    return _analyze_command(args)

def analyze_file_command(args):
    """Execute the analyze-file command."""
    from .analyze import analyze_file_command as _analyze_file_command
    return _analyze_file_command(args)

def decode_revert_command(args):
    """Execute the decode-revert command."""
    from .revert import decode_revert_command as _decode_revert_command
    return _decode_revert_command(args)

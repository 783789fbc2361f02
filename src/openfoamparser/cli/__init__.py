"""Command-line interface."""

from .app import main, parse_arguments, setup_logging

__all__ = ['main', 'parse_arguments', 'setup_logging']

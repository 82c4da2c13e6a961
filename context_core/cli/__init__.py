"""
CLI MODULE
==========

Command-line interface for contextCore.

Usage:
    python -m context_core.cli context <chat_id> [--tier LARGE]
    python -m context_core.cli stats
    python -m context_core.cli summaries
"""

from .main import main, cli_context, cli_stats, cli_summaries, cli_clear_summaries

__all__ = [
    'main',
    'cli_context',
    'cli_stats',
    'cli_summaries',
    'cli_clear_summaries',
]

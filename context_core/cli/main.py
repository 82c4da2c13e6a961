"""
CLI_MAIN
========

Command-line interface for contextCore.

Global Flags:
    --server            Start the API server
    --port PORT         Port for API server (default: 8432)
    --log-level LEVEL   Logging level (default: from config)

Commands:
    context             Assemble and print the context window for a chat
    state               Show a chat's compaction state
    stats               Show summary count and estimated tokens saved
    summaries           List recent summaries
    clear-summaries     Delete every summary

Usage:
    python -m context_core.cli --server
    python -m context_core.cli context chat-42 --tier LARGE
    python -m context_core.cli stats
    python -m context_core.cli summaries --limit 5
    python -m context_core.cli clear-summaries --yes
"""

import argparse
import json
from typing import Optional

from ..memory.summaries import SummaryStoreError


def get_assembler():
    """Get the window assembler with error handling."""
    try:
        from ..context.window import get_window_assembler
        return get_window_assembler()
    except Exception as e:
        print(f"Error initializing context assembler: {e}")
        return None


# ============================================================================
# CLI COMMANDS
# ============================================================================

def cli_context(chat_id: str, tier: str = "FAST") -> dict:
    """
    Assemble the context window for a chat.

    Args:
        chat_id: Chat to assemble
        tier: FAST or LARGE

    Returns:
        Dict with entries, or error
    """
    assembler = get_assembler()
    if not assembler:
        return {"error": "Failed to initialize context assembler"}

    try:
        window = assembler.get_context(chat_id, tier)
    except ValueError as e:
        return {"error": str(e)}

    return {
        "chat_id": chat_id,
        "tier": tier.upper(),
        "entries": [entry.to_dict() for entry in window],
    }


def cli_state(chat_id: str) -> dict:
    assembler = get_assembler()
    if not assembler:
        return {"error": "Failed to initialize context assembler"}
    try:
        return {"chat_id": chat_id, "state": assembler.get_state(chat_id)}
    except SummaryStoreError as e:
        return {"error": f"Summary store unavailable: {e}"}


def cli_stats() -> dict:
    """Aggregate compaction statistics."""
    assembler = get_assembler()
    if not assembler:
        return {"error": "Failed to initialize context assembler"}
    try:
        return assembler.get_stats()
    except SummaryStoreError as e:
        return {"error": f"Summary store unavailable: {e}"}


def cli_summaries(limit: int = 20) -> dict:
    """List recent summaries, newest first."""
    assembler = get_assembler()
    if not assembler:
        return {"error": "Failed to initialize context assembler"}
    try:
        summaries = assembler.get_summaries(limit)
    except SummaryStoreError as e:
        return {"error": f"Summary store unavailable: {e}"}
    return {"summaries": [s.to_dict() for s in summaries]}


def cli_clear_summaries() -> dict:
    assembler = get_assembler()
    if not assembler:
        return {"error": "Failed to initialize context assembler"}
    try:
        assembler.clear_summaries()
    except SummaryStoreError as e:
        return {"error": f"Summary store unavailable: {e}"}
    return {"success": True}


# ============================================================================
# MAIN ENTRY POINT
# ============================================================================

def cli_start_server(port: int = 8432):
    """Start the API server."""
    import uvicorn

    print(f"Starting contextCore API server on http://localhost:{port}")
    print(f"API docs: http://localhost:{port}/docs")
    try:
        uvicorn.run(
            "context_core.api.app:app",
            host="localhost",
            port=port,
            log_level="info"
        )
    except KeyboardInterrupt:
        print("\nShutting down...")


def _setup_logging(level: Optional[str]) -> None:
    from ..config.loader import get_config_manager
    from ..logging_config import setup_logging

    config = get_config_manager().global_config
    setup_logging(level or config.logging_level, config.logging_file,
                  logs_dir=config.paths.logs_dir)


def main(argv=None):
    """Main CLI entry point."""
    parser = argparse.ArgumentParser(
        prog="context-core",
        description="contextCore - bounded context windows for long-running chats",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
EXAMPLES
========

  %(prog)s --server --port 9000
  %(prog)s context chat-42 --tier LARGE
  %(prog)s state chat-42
  %(prog)s stats
  %(prog)s summaries --limit 5
  %(prog)s clear-summaries --yes
        """
    )

    parser.add_argument(
        "--version", "-V",
        action="version",
        version="%(prog)s 1.0.0"
    )
    parser.add_argument(
        "--server",
        action="store_true",
        help="Start the API server"
    )
    parser.add_argument(
        "--port",
        type=int,
        default=8432,
        help="Port for API server (default: 8432)"
    )
    parser.add_argument(
        "--log-level",
        help="Logging level (DEBUG, INFO, WARNING, ERROR)"
    )

    subparsers = parser.add_subparsers(
        dest="command",
        title="commands",
        metavar="<command>"
    )

    context_parser = subparsers.add_parser(
        "context",
        help="Assemble the context window for a chat",
        description="Run the compaction check, then print digest + recent tail as JSON."
    )
    context_parser.add_argument("chat_id", help="Chat ID")
    context_parser.add_argument("--tier", "-t", default="FAST",
                                help="FAST (20 messages) or LARGE (50 messages)")

    state_parser = subparsers.add_parser("state", help="Show a chat's compaction state")
    state_parser.add_argument("chat_id", help="Chat ID")

    subparsers.add_parser("stats", help="Show compaction statistics")

    summaries_parser = subparsers.add_parser("summaries", help="List recent summaries")
    summaries_parser.add_argument("--limit", "-l", type=int, default=20,
                                  help="Max results")

    clear_parser = subparsers.add_parser("clear-summaries", help="Delete every summary")
    clear_parser.add_argument("--yes", "-y", action="store_true",
                              help="Skip confirmation")

    args = parser.parse_args(argv)

    _setup_logging(args.log_level)

    if args.server:
        cli_start_server(args.port)
        return

    if args.command is None:
        parser.print_help()
        return

    if args.command == "context":
        result = cli_context(args.chat_id, args.tier)
        if "error" in result:
            print(f"Error: {result['error']}")
        else:
            print(json.dumps(result, indent=2, ensure_ascii=False))

    elif args.command == "state":
        result = cli_state(args.chat_id)
        if "error" in result:
            print(f"Error: {result['error']}")
        else:
            print(f"{result['chat_id']}: {result['state']}")

    elif args.command == "stats":
        stats = cli_stats()
        if "error" in stats:
            print(f"Error: {stats['error']}")
        else:
            print("\nCompaction Stats:")
            print(f"  Total summaries: {stats['total_summaries']}")
            print(f"  Estimated tokens saved: {stats['estimated_tokens_saved']}")

    elif args.command == "summaries":
        result = cli_summaries(args.limit)
        if "error" in result:
            print(f"Error: {result['error']}")
        elif result["summaries"]:
            print("\nRecent Summaries:")
            for s in result["summaries"]:
                print(f"  [{s['id']}] chat={s['chat_id']} {s['created_at'][:19]}")
                print(f"      Range: {s['range_start'][:19]} -> {s['range_end'][:19]}")
                print(f"      Tokens: {s['original_tokens']} -> {s['summary_tokens']}")
        else:
            print("No summaries found.")

    elif args.command == "clear-summaries":
        if not args.yes:
            answer = input("Delete ALL summaries? [y/N] ").strip().lower()
            if answer not in ("y", "yes"):
                print("Aborted.")
                return
        result = cli_clear_summaries()
        if "error" in result:
            print(f"Error: {result['error']}")
        else:
            print("All summaries cleared.")


if __name__ == "__main__":
    main()

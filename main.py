"""
Command-line language server query.

Starts the configured language server for a file's workspace, opens the
file, and prints what the editor would show: published diagnostics and,
when a position is given, completions and the definition location.

Environment variables:
- LOG_LEVEL: Log level (default: INFO)

Logging can also be configured with "log_level" and "log_file" in tron.jsonc.
"""

import argparse
import asyncio
import logging
import shlex
import sys
from pathlib import Path

from config import load_config
from editor import LanguageService, find_workspace_root, setup_logging
from lsp import DiagnosticsUpdate, LSPError, path_to_uri, uri_to_path

logger = logging.getLogger(__name__)

DEFAULT_DIAGNOSTICS_WAIT = 3.0
MAX_COMPLETIONS_SHOWN = 20


async def wait_for_diagnostics(
    queue: asyncio.Queue[DiagnosticsUpdate], uri: str, timeout: float
) -> DiagnosticsUpdate | None:
    """Wait for the first diagnostics publish for ``uri``."""

    async def next_for_uri() -> DiagnosticsUpdate:
        while True:
            update = await queue.get()
            if update.uri == uri:
                return update

    try:
        return await asyncio.wait_for(next_for_uri(), timeout=timeout)
    except asyncio.TimeoutError:
        return None


async def run(args: argparse.Namespace) -> int:
    file_path = Path(args.file).resolve()
    if not file_path.is_file():
        print(f"File not found: {file_path}", file=sys.stderr)
        return 1

    config = load_config(Path(args.root) if args.root else file_path.parent)
    if config.log_level or config.log_file:
        # Command-line flags win over the config file
        setup_logging(args.log_level or config.log_level, args.log_file or config.log_file)
    if args.command:
        config.language_server.command = shlex.split(args.command)

    root = args.root or find_workspace_root(file_path, config.language_server.root_markers)
    text = file_path.read_text(encoding="utf-8")
    uri = path_to_uri(file_path)

    async with LanguageService.from_config(root, config) as service:
        updates = service.subscribe_diagnostics()
        await service.open_document(file_path, text)

        update = await wait_for_diagnostics(updates, uri, args.wait)
        if update is None:
            print(f"No diagnostics published for {file_path} within {args.wait}s")
        elif not update.diagnostics:
            print(f"No diagnostics found for {file_path}")
        else:
            print(f"Diagnostics for {file_path}:")
            for diagnostic in update.diagnostics:
                print(f"  {diagnostic.pretty_format()}")
        service.unsubscribe_diagnostics(updates)

        if args.line is not None:
            line, col = args.line - 1, args.col - 1

            items = await service.completions(file_path, line, col)
            print(f"\n{len(items)} completion(s) at {args.line}:{args.col}")
            for item in items[:MAX_COMPLETIONS_SHOWN]:
                kind = f" ({item.kind_name})" if item.kind_name else ""
                print(f"  {item.label}{kind}")

            location = await service.definition(file_path, line, col)
            if location is None:
                print("\nNo definition found")
            else:
                start = location.range.start
                print(f"\nDefinition: {uri_to_path(location.uri)}:{start.line + 1}:{start.character + 1}")

    return 0


def main() -> None:
    parser = argparse.ArgumentParser(description="Query a language server about one file")
    parser.add_argument("file", help="Source file to open")
    parser.add_argument("--line", type=int, help="1-based line for completions/definition")
    parser.add_argument("--col", type=int, default=1, help="1-based column (default: 1)")
    parser.add_argument("--root", help="Workspace root (default: detected from root markers)")
    parser.add_argument("--command", help="Language server command line (overrides config)")
    parser.add_argument(
        "--wait",
        type=float,
        default=DEFAULT_DIAGNOSTICS_WAIT,
        help="Seconds to wait for diagnostics",
    )
    parser.add_argument("--log-level", help="Log level (default: LOG_LEVEL env var or INFO)")
    parser.add_argument("--log-file", help="Write logs to this file instead of stderr")
    args = parser.parse_args()

    setup_logging(args.log_level, args.log_file)

    try:
        sys.exit(asyncio.run(run(args)))
    except LSPError as e:
        logger.error("Language server error: %s", e)
        sys.exit(1)


if __name__ == "__main__":
    main()

from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path

from rich.console import Console
from rich.markup import escape

from ..config.settings import Settings
from ..scanner.deadline import ScanScope
from ..scanner.errors import ScanError
from ..scanner.magic_probe import probe_mime_type
from ..scanner.pipeline import file_sha256, run_scan
from ..services.index_store import IndexStore, PluginResults
from ..services.webhook import WebhookClient
from .display import render_markdown

logger = logging.getLogger(__name__)

USAGE_ERROR = "Please supply a file to scan with malice/fileinfo"
WEB_COMMAND = "web"

_stderr = Console(stderr=True, highlight=False, soft_wrap=True)


def build_parser(settings: Settings) -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="fileinfo",
        description="Malice File Info Plugin - ssdeep/exiftool/TRiD/apkfile",
        epilog="Run 'fileinfo [-V] web' to start the HTTP scan service instead.",
    )
    parser.add_argument("path", nargs="?", type=Path, help="File to scan.")
    parser.add_argument("-V", "--verbose", action="store_true", help="verbose output")
    parser.add_argument("-t", "--table", action="store_true", help="output as Markdown table")
    parser.add_argument("-m", "--mime", action="store_true", help="output only mimetype")
    parser.add_argument(
        "-c",
        "--callback",
        action="store_true",
        help="POST results to the webhook in MALICE_ENDPOINT",
    )
    parser.add_argument(
        "-x",
        "--proxy",
        action="store_true",
        help="send the webhook request through MALICE_PROXY",
    )
    parser.add_argument(
        "--store",
        action="store_true",
        help="upsert results into the index store (SUPABASE_URL/SUPABASE_KEY)",
    )
    parser.add_argument(
        "--timeout",
        type=int,
        default=settings.timeout_seconds,
        help=f"plugin timeout in seconds (default: {settings.timeout_seconds})",
    )
    parser.add_argument("--version", action="version", version=settings.version_string)
    return parser


def _configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )


def _report_error(exc: ScanError) -> int:
    return _print_error(escape(f"[{exc.code}]") + ": " + escape(str(exc)))


def _print_error(message: str) -> int:
    _stderr.print(f"[bold red]error[/bold red]{message}")
    return 1


def run_web(settings: Settings) -> int:
    import uvicorn

    from ..main import create_app

    logger.info("web service listening on %s:%s", settings.web_host, settings.web_port)
    uvicorn.run(create_app(settings), host=settings.web_host, port=settings.web_port)
    return 0


def scan_identifier(settings: Settings, path: Path) -> str:
    return settings.scan_id or file_sha256(path)


def main(argv: list[str] | None = None, settings: Settings | None = None) -> int:
    settings = settings or Settings.from_env()
    argv = list(sys.argv[1:] if argv is None else argv)

    args = build_parser(settings).parse_args(argv)
    _configure_logging(args.verbose)

    # a file that happens to be named "web" is still scanned
    if args.path == Path(WEB_COMMAND) and not args.path.exists():
        return run_web(settings)

    if args.path is None:
        return _print_error(f": {USAGE_ERROR}")
    if not args.path.exists():
        return _print_error(escape(f": {args.path}: no such file or directory"))
    if args.timeout <= 0:
        return _print_error(": --timeout must be a positive number of seconds")

    try:
        with ScanScope(args.timeout) as scope:
            if args.mime:
                print(probe_mime_type(scope, args.path))
                return 0
            report = run_scan(scope, args.path, commands=settings.tool_commands)
    except ScanError as exc:
        return _report_error(exc)

    report = report.with_markdown(render_markdown(report))

    try:
        if args.store:
            store = IndexStore(settings.supabase_url, settings.supabase_key, table=settings.store_table)
            store.upsert(PluginResults(id=scan_identifier(settings, args.path), data=report.to_dict()))

        if args.table:
            print(report.markdown)
            return 0

        payload = report.to_dict(include_markdown=False)
        if args.callback:
            proxy = settings.webhook_proxy if args.proxy else None
            with WebhookClient(settings.webhook_endpoint, proxy=proxy) as client:
                print(client.post_report(payload, scan_identifier(settings, args.path)))
            return 0

        print(json.dumps(payload))
    except ScanError as exc:
        return _report_error(exc)
    return 0


if __name__ == "__main__":
    sys.exit(main())

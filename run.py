"""Dungeon Forge CLI entry point.

Provides subcommands for running the HTTP server, generating a layout to a
JSON file, and validating or scoring a saved layout. Accepts configuration
via flags and environment variables, with optional .env loading.

Run `python run.py --help` for details.
"""

import argparse
import os
import signal
import sys
from textwrap import dedent

from colorama import Fore, Style
from colorama import init as _color_init
from dotenv import load_dotenv

_color_init()

# Disable colors if output is not a real terminal (e.g., during pytest capture)
_COLOR_ENABLED = sys.stdout.isatty()

__version__ = "0.1.0"


def parse_args(argv: list[str]) -> argparse.Namespace:
    description = """
    Dungeon Forge layout generator

    Run the layout HTTP API, or generate / validate / score layouts from the
    command line. Configuration can be provided via CLI flags or environment
    variables. If both are present, CLI flags take precedence.
    """

    epilog = dedent(
        """
        Environment variables:
          HOST                  Bind address for the web server (default: 0.0.0.0)
          PORT                  Port for the web server (default: 5000)
          DATABASE_URL          SQLAlchemy database URI (default: sqlite:///instance/dungeonforge.db)
          LAYOUT_SPACING_SCOPE  "all" or "adjacent" region spacing checks
          LAYOUT_MAX_ATTEMPTS   regenerate attempts for playable layouts (default: 5)

        Examples:
          # Run the server on the default host and port
          python run.py server

          # Generate a 1200x1000 layout with 8 regions from a fixed seed
          python run.py generate --width 1200 --height 1000 --rooms 8 --seed 42 --out layout.json

          # Validate and score a saved layout
          python run.py validate layout.json
          python run.py analyze layout.json
        """
    )

    parser = argparse.ArgumentParser(
        prog="dungeonforge",
        description=dedent(description),
        epilog=epilog,
        formatter_class=argparse.RawTextHelpFormatter,
    )
    parser.add_argument(
        "--env-file",
        dest="env_file",
        help="Path to a .env file to load before processing flags",
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"Dungeon Forge {__version__}",
    )

    subparsers = parser.add_subparsers(dest="command")

    # server subcommand
    server_parser = subparsers.add_parser(
        "server",
        help="Run the layout HTTP API",
        formatter_class=argparse.RawTextHelpFormatter,
    )
    server_parser.add_argument("--host", default=None, help="Host interface to bind (default: env HOST or 0.0.0.0)")
    server_parser.add_argument("--port", type=int, default=None, help="Port to listen on (default: env PORT or 5000)")
    server_parser.add_argument(
        "--db",
        dest="db_uri",
        default=None,
        help="Database URI (default: env DATABASE_URL or sqlite:///instance/dungeonforge.db)",
    )
    server_parser.add_argument("--debug", action="store_true", help="Enable Flask debug mode")
    server_parser.set_defaults(command="server")

    # generate subcommand
    gen_parser = subparsers.add_parser(
        "generate",
        help="Generate a layout and write it as JSON",
        formatter_class=argparse.RawTextHelpFormatter,
    )
    gen_parser.add_argument("--map-id", dest="map_id", default=None, help="Map id (default: dungeon_<seed>)")
    gen_parser.add_argument("--width", type=int, default=800)
    gen_parser.add_argument("--height", type=int, default=800)
    gen_parser.add_argument("--rooms", dest="room_count", type=int, default=5, help="Requested region count")
    gen_parser.add_argument("--min-size", dest="min_room_size", type=int, default=100)
    gen_parser.add_argument("--max-size", dest="max_room_size", type=int, default=200)
    gen_parser.add_argument("--difficulty", type=int, default=1)
    gen_parser.add_argument("--level", type=int, default=1)
    gen_parser.add_argument("--padding", dest="region_padding", type=int, default=0)
    gen_parser.add_argument(
        "--extra-connections",
        dest="extra_connection_chance",
        type=float,
        default=0.0,
        help="Chance [0,1] of a secret/teleport edge per non-adjacent pair",
    )
    gen_parser.add_argument("--seed", type=int, default=None)
    gen_parser.add_argument("--attempts", type=int, default=None, help="Regenerate attempts (default: env or 5)")
    gen_parser.add_argument("--out", default=None, help="Output file (default: stdout)")
    gen_parser.set_defaults(command="generate")

    # validate / analyze subcommands
    val_parser = subparsers.add_parser("validate", help="Validate a layout JSON file")
    val_parser.add_argument("path", help="Path to layout JSON")
    val_parser.add_argument("--spacing-scope", dest="spacing_scope", choices=("all", "adjacent"), default=None)
    val_parser.set_defaults(command="validate")

    an_parser = subparsers.add_parser("analyze", help="Score a layout JSON file and list suggestions")
    an_parser.add_argument("path", help="Path to layout JSON")
    an_parser.set_defaults(command="analyze")

    # If no subcommand provided, default to server
    if len(argv) == 0:
        argv = ["server"]

    return parser.parse_args(argv)


def _c(color: str, text) -> str:
    return f"{color}{text}{Style.RESET_ALL}" if _COLOR_ENABLED else str(text)


def _banner(mode: str, rows: list[tuple[str, str]]) -> None:
    title = _c(Fore.CYAN + Style.BRIGHT, "Dungeon Forge")
    divider = _c(Fore.MAGENTA, "=" * 40)
    lines = [divider, f"  {title}", divider, f"  {_c(Fore.YELLOW, 'Mode:'):12} {_c(Fore.GREEN, mode.upper())}"]
    for label, value in rows:
        lines.append(f"  {_c(Fore.YELLOW, label + ':'):12} {_c(Fore.GREEN, value)}")
    lines += [divider, ""]
    print("\n".join(lines))


def _load_layout(path: str):
    from dungeonforge.layout import from_json

    with open(path, "r", encoding="utf-8") as f:
        return from_json(f.read(), strict=False)


def cmd_generate(args) -> int:
    from dungeonforge.layout import GenerationConfig, LayoutError, QualityAnalyzer, generate_validated, to_json

    data = {k: getattr(args, k) for k in (
        "map_id", "width", "height", "room_count", "min_room_size", "max_room_size",
        "difficulty", "level", "region_padding", "extra_connection_chance",
    )}
    try:
        config = GenerationConfig.from_dict(data).validate()
        result = generate_validated(config, seed=args.seed, max_attempts=args.attempts)
    except (LayoutError, ValueError) as exc:
        print(_c(Fore.RED, f"[ERROR] {exc}"), file=sys.stderr)
        return 2
    text = to_json(result.layout, indent=2)
    if args.out:
        with open(args.out, "w", encoding="utf-8") as f:
            f.write(text)
    else:
        print(text)
    report = QualityAnalyzer().analyze(result.layout)
    status = _c(Fore.GREEN, "playable") if result.playable else _c(Fore.RED, "NOT playable")
    print(
        f"{result.layout.id}: seed={result.seed} attempts={result.attempts} "
        f"regions={len(result.layout.regions)} violations={len(result.violations)} "
        f"score={report.overall:.1f} {status}",
        file=sys.stderr,
    )
    return 0 if result.playable else 1


def cmd_validate(args) -> int:
    from dungeonforge.layout import GraphValidator, LayoutError, is_playable

    scope = args.spacing_scope or os.getenv("LAYOUT_SPACING_SCOPE", "all")
    try:
        layout = _load_layout(args.path)
        violations = GraphValidator(spacing_scope=scope).validate(layout)
    except (OSError, LayoutError, ValueError) as exc:
        print(_c(Fore.RED, f"[ERROR] {exc}"), file=sys.stderr)
        return 2
    for v in violations:
        color = Fore.RED if v.blocking else Fore.YELLOW
        print(f"{_c(color, v.code):28} {v.message}")
    ok = is_playable(violations)
    print(_c(Fore.GREEN, "OK: playable") if ok else _c(Fore.RED, "FAIL: blocking violations"))
    return 0 if ok else 1


def cmd_analyze(args) -> int:
    from dungeonforge.layout import LayoutError, QualityAnalyzer

    try:
        layout = _load_layout(args.path)
    except (OSError, LayoutError, ValueError) as exc:
        print(_c(Fore.RED, f"[ERROR] {exc}"), file=sys.stderr)
        return 2
    report = QualityAnalyzer().analyze(layout)
    for name in ("overall", "gameplay", "balance", "performance", "layout"):
        print(f"{_c(Fore.YELLOW, name + ':'):24} {getattr(report, name):6.1f}")
    for s in report.suggestions:
        print(f"  [{s.priority.value}] {s.type.value}: {s.description}")
    return 0


def main(argv: list[str]) -> int:
    args = parse_args(argv)
    if getattr(args, "env_file", None):
        load_dotenv(args.env_file)
    else:
        # Load default .env if present (no error if missing)
        load_dotenv()

    mode = (getattr(args, "command", None) or "server").lower()
    if mode == "generate":
        return cmd_generate(args)
    if mode == "validate":
        return cmd_validate(args)
    if mode == "analyze":
        return cmd_analyze(args)

    host = getattr(args, "host", None) or os.getenv("HOST", "0.0.0.0")
    port = int(getattr(args, "port", None) or os.getenv("PORT", "5000"))
    db_uri_cli = getattr(args, "db_uri", None)
    # Make DATABASE_URL available to the Flask app BEFORE it is created
    if db_uri_cli:
        os.environ["DATABASE_URL"] = db_uri_cli
    db_banner = db_uri_cli or os.getenv("DATABASE_URL") or "auto (instance/dungeonforge.db)"

    def handle_sigint(sig, frame):
        print("\n[INFO] Shutting down server...")
        sys.exit(0)

    signal.signal(signal.SIGINT, handle_sigint)

    from dungeonforge.logging_utils import log
    from dungeonforge.server import start_server

    _banner(mode, [("Host", host), ("Port", str(port)), ("Database", db_banner)])
    log.info(event="startup", mode=mode, host=host, port=port, db=db_banner)
    start_server(host=host, port=port, debug=getattr(args, "debug", False))
    return 0


if __name__ == "__main__":
    sys.exit(main(sys.argv[1:]))

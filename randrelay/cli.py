"""randrelay.cli

Command line interface entry point for randrelay.

Design constraints:
- argparse-based.
- Lazy imports: do not import heavy dependencies at parse time.
"""

from __future__ import annotations

import argparse
import json
import sys
from collections.abc import Callable
from dataclasses import dataclass
from pathlib import Path

EPILOG = "Commit now, reveal later."


@dataclass(frozen=True)
class CliContext:
    repo_root: Path
    config_path: Path | None = None


def _repo_root_from_cwd() -> Path:
    return Path.cwd()


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="randrelay",
        description="Relay drand and commit-reveal randomness to on-chain oracles.",
        epilog=EPILOG,
    )
    parser.add_argument(
        "--version",
        action="store_true",
        help="Print version and exit.",
    )
    parser.add_argument(
        "--config",
        type=Path,
        default=None,
        help="Path to a config YAML (default: config/default.yaml).",
    )

    sub = parser.add_subparsers(dest="command")

    p_run = sub.add_parser("run", help="Run the relay until interrupted")
    p_run.add_argument("--verbose", action="store_true", help="Log every submission.")

    sub.add_parser("config", help="Print the effective config (secrets redacted)")

    return parser


def _print_version() -> None:
    from randrelay import __version__

    print(f"randrelay v{__version__}")


def _load_config(ctx: CliContext):  # type: ignore[no-untyped-def]
    from randrelay.core.config import Config

    path = ctx.config_path or ctx.repo_root / "config" / "default.yaml"
    return Config.from_yaml(path) if path.exists() else Config()


def _cmd_config(ctx: CliContext, args: argparse.Namespace) -> int:
    from randrelay.core.exceptions import ConfigError
    from randrelay.security.redaction import sanitize_for_log

    try:
        cfg = _load_config(ctx)
    except (ConfigError, ValueError) as e:
        print(f"error: {e}", file=sys.stderr)
        return 2

    data = sanitize_for_log(cfg.model_dump(mode="json"), [cfg.chain.private_key])
    print(json.dumps(data, indent=2, sort_keys=True))
    return 0


def _cmd_run(ctx: CliContext, args: argparse.Namespace) -> int:
    import asyncio
    import signal

    from randrelay.core.exceptions import ConfigError, NonceSyncError
    from randrelay.core.logging import configure_logging
    from randrelay.service import build_service

    try:
        cfg = _load_config(ctx)
        if args.verbose:
            cfg = cfg.model_copy(update={"logging": cfg.logging.model_copy(update={"verbose": True})})
        log = configure_logging(cfg.logging, known_secrets=[cfg.chain.private_key])
        service, clients = build_service(cfg)
    except (ConfigError, ValueError) as e:
        print(f"error: {e}", file=sys.stderr)
        return 2

    async def _main() -> int:
        loop = asyncio.get_running_loop()
        for sig in (signal.SIGINT, signal.SIGTERM):
            try:
                loop.add_signal_handler(sig, service.stop)
            except NotImplementedError:  # pragma: no cover - non-POSIX
                pass
        try:
            await service.start()
        except NonceSyncError as e:
            log.error("relay_startup_failed", extra={"error": str(e)})
            return 1
        await service.run()
        return 0

    async def _with_clients() -> int:
        try:
            return await _main()
        finally:
            for c in clients:
                await c.aclose()

    return asyncio.run(_with_clients())


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.version:
        _print_version()
        return 0

    if not args.command:
        parser.print_help()
        return 2

    ctx = CliContext(repo_root=_repo_root_from_cwd(), config_path=args.config)

    dispatch: dict[str, Callable[[CliContext, argparse.Namespace], int]] = {
        "run": _cmd_run,
        "config": _cmd_config,
    }

    fn = dispatch.get(str(args.command))
    if fn is None:
        print(f"Unknown command: {args.command}", file=sys.stderr)
        return 2

    return int(fn(ctx, args))


if __name__ == "__main__":
    raise SystemExit(main())

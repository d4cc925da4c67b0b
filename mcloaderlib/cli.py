from __future__ import annotations

import argparse
from dataclasses import replace
import json
import logging
from pathlib import Path
import signal
import sys

from .catalog import VersionCatalogClient
from .config import InstallerSettings
from .exceptions import McLoaderLibError
from .fetcher import ArtifactProgress
from .logging_utils import configure_logging
from .models import InstallRequest, InstallTarget, LoaderKind
from .orchestrator import InstallOrchestrator, InstallState
from .utils import default_minecraft_dir


def _settings(args: argparse.Namespace) -> InstallerSettings:
    settings = InstallerSettings.from_env()
    if getattr(args, "workers", None):
        settings = replace(settings, fetch_workers=args.workers)
    return settings


def _cmd_loaders() -> int:
    for kind in LoaderKind:
        print(kind.value)
    return 0


def _cmd_versions(args: argparse.Namespace) -> int:
    client = VersionCatalogClient(settings=_settings(args))
    try:
        if args.minecraft_version:
            versions = client.list_loader_versions(
                args.loader, args.minecraft_version, stable_only=not args.all
            )
        else:
            versions = client.list_minecraft_versions(args.loader, stable_only=not args.all)
    except McLoaderLibError as exc:
        print(exc.message, file=sys.stderr)
        return 1
    for version in versions:
        print(version)
    return 0


def _cmd_install(args: argparse.Namespace) -> int:
    target = InstallTarget.parse(args.target)
    if args.dir:
        destination = Path(args.dir)
    elif target is InstallTarget.CLIENT:
        destination = default_minecraft_dir()
    else:
        print("--dir is required for server installs.", file=sys.stderr)
        return 2

    def _stage(state: InstallState) -> None:
        print(f"[{state.value}]", file=sys.stderr)

    def _progress(progress: ArtifactProgress) -> None:
        if progress.status in ("done", "skipped"):
            print(f"  {progress.status}: {progress.identifier}", file=sys.stderr)

    orchestrator = InstallOrchestrator(
        settings=_settings(args),
        on_stage=_stage,
        on_progress=_progress,
    )
    previous = signal.getsignal(signal.SIGINT)

    def _interrupt(signum, frame) -> None:  # noqa: ANN001
        orchestrator.cancel()

    signal.signal(signal.SIGINT, _interrupt)
    try:
        result = orchestrator.run_request(
            InstallRequest(
                loader=args.loader,
                target=target,
                destination=destination,
                game_version=args.minecraft_version,
                loader_version=args.loader_version,
                java_path=args.java,
                profile_store=Path(args.profile_store) if args.profile_store else None,
            )
        )
    finally:
        signal.signal(signal.SIGINT, previous)

    print(json.dumps(result.to_dict(), indent=2))
    return 0 if result.success else 1


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="mcloader",
        description="Install Fabric, Forge or Quilt for a Minecraft client or server.",
    )
    parser.add_argument("--verbose", action="store_true", help="Enable debug logging.")
    parser.add_argument("--log-file", default=None, help="Also write logs to this file.")
    sub = parser.add_subparsers(dest="command", required=True)
    loaders = [kind.value for kind in LoaderKind]

    sub.add_parser("loaders", help="Print supported loaders.")

    versions = sub.add_parser("versions", help="List published versions.")
    versions.add_argument("--loader", required=True, choices=loaders, help="Loader name.")
    versions.add_argument(
        "--minecraft-version",
        default=None,
        help="List loader versions for this Minecraft version instead of game versions.",
    )
    versions.add_argument("--all", action="store_true", help="Include unstable versions.")

    install = sub.add_parser("install", help="Install a loader.")
    install.add_argument("--loader", required=True, choices=loaders, help="Loader name.")
    install.add_argument(
        "--target",
        required=True,
        choices=[target.value for target in InstallTarget],
        help="Install into a client (launcher profile) or a server directory.",
    )
    install.add_argument(
        "--dir",
        default=None,
        help="Minecraft directory (client, defaults to the launcher's) or server directory.",
    )
    install.add_argument(
        "--minecraft-version",
        default=None,
        help="Minecraft version (default: recommended, else latest).",
    )
    install.add_argument(
        "--loader-version",
        default=None,
        help="Loader version (default: recommended, else latest).",
    )
    install.add_argument(
        "--java",
        default="java",
        help="Java executable used by installers and written into launch scripts.",
    )
    install.add_argument(
        "--profile-store",
        default=None,
        help="Directory holding launcher_profiles.json (default: --dir).",
    )
    install.add_argument(
        "--workers",
        type=int,
        default=None,
        help="Parallel downloads (1-8).",
    )

    return parser


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    configure_logging(
        level=logging.DEBUG if args.verbose else logging.INFO,
        log_path=args.log_file,
    )

    try:
        if args.command == "loaders":
            return _cmd_loaders()
        if args.command == "versions":
            return _cmd_versions(args)
        if args.command == "install":
            return _cmd_install(args)
    except ValueError as exc:
        print(str(exc), file=sys.stderr)
        return 2
    parser.print_help()
    return 2


if __name__ == "__main__":
    sys.exit(main())

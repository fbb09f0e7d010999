"""
funcvm command line.

Usage:
    funcvm use <version> [--local]   # Install if needed and pin globally (or locally)
    funcvm install <version>         # Install without changing pins
    funcvm list [--remote]           # Installed versions, or versions in the feed
    funcvm remove <version>          # Delete an installed version
    funcvm doctor                    # Check for a conflicting Core Tools install
"""

from __future__ import annotations

import argparse
import logging
import os
import sys
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Mapping, Union

from .activation import VERSION_ENV_VAR, effective_version, version_sources
from .common import is_debug_enabled
from .config import Config, load_config
from .environment import validate_environment
from .errors import FuncvmError, LocalPinExistsError
from .feed import FeedResolver, ResolvedTarget
from .installer import InstallCoordinator
from .logging_config import setup_logging
from .platforms import Platform, detect_platform
from .render import (
    remote_tags,
    render_installed_line,
    render_remote_line,
    sort_versions,
)
from .store import VersionStore

logger = logging.getLogger(__name__)

HELP_TEXT = """
Azure Functions Core Tools Version Manager (unofficial)

Usage: funcvm <command> <version>

Examples:

    Use latest stable 4.x version:
        funcvm use 4

    Use exact version:
        funcvm use 4.0.3928

    Pin a version for the current directory only:
        funcvm use 4.0.3928 --local

    Download a version without switching to it:
        funcvm install 4.0.3928

    List installed versions:
        funcvm list

    List versions available for download:
        funcvm list --remote

    Delete an installed version:
        funcvm remove 4.0.3928

    Check for a conflicting Core Tools installation:
        funcvm doctor

Set {env_var} to override the active version for one shell.
""".format(env_var=VERSION_ENV_VAR)


@dataclass(frozen=True)
class UseCommand:
    version: str
    local: bool = False


@dataclass(frozen=True)
class InstallCommand:
    version: str


@dataclass(frozen=True)
class ListCommand:
    remote: bool = False


@dataclass(frozen=True)
class RemoveCommand:
    version: str


@dataclass(frozen=True)
class DoctorCommand:
    pass


@dataclass(frozen=True)
class HelpCommand:
    pass


Command = Union[UseCommand, InstallCommand, ListCommand, RemoveCommand, DoctorCommand, HelpCommand]


@dataclass(frozen=True)
class Options:
    verbose: bool = False
    config_path: str | None = None


class UsageError(FuncvmError):
    """Malformed command line."""


class _Parser(argparse.ArgumentParser):
    def error(self, message: str):
        raise UsageError(f"{self.prog}: {message}", "Run 'funcvm help' for usage.")


def build_parser() -> argparse.ArgumentParser:
    parser = _Parser(
        prog="funcvm",
        description="Azure Functions Core Tools Version Manager",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        add_help=False,
    )
    parser.add_argument("--verbose", "-v", action="store_true", help="Verbose output")
    parser.add_argument("--config", dest="config_path", help="Path to a config file")

    sub = parser.add_subparsers(dest="command", parser_class=_Parser)

    use = sub.add_parser("use", help="Install if needed and make a version active")
    use.add_argument("version")
    use.add_argument("--local", action="store_true", help="Pin for the current directory")

    install = sub.add_parser("install", help="Install a version")
    install.add_argument("version")

    listing = sub.add_parser("list", help="List installed versions")
    listing.add_argument("--remote", action="store_true", help="List versions in the release feed")

    remove = sub.add_parser("remove", help="Delete an installed version")
    remove.add_argument("version")

    sub.add_parser("doctor", help="Check for a conflicting Core Tools installation")
    sub.add_parser("help", help="Show usage")
    return parser


COMMAND_NAMES = ("use", "install", "list", "remove", "doctor", "help")


def parse_command(argv: list[str]) -> tuple[Command, Options]:
    """
    Parse argv into a command variant and global options.

    No arguments or an unknown command yield HelpCommand.

    Raises:
        UsageError: If a known command is missing arguments
    """
    positional = []
    skip_next = False
    for arg in argv:
        if skip_next:
            skip_next = False
        elif arg == "--config":
            skip_next = True
        elif not arg.startswith("-"):
            positional.append(arg)

    if not positional or positional[0] not in COMMAND_NAMES:
        return HelpCommand(), Options(verbose="--verbose" in argv or "-v" in argv)

    args = build_parser().parse_args(argv)
    options = Options(verbose=args.verbose, config_path=args.config_path)

    if args.command == "use":
        return UseCommand(args.version, local=args.local), options
    if args.command == "install":
        return InstallCommand(args.version), options
    if args.command == "list":
        return ListCommand(remote=args.remote), options
    if args.command == "remove":
        return RemoveCommand(args.version), options
    if args.command == "doctor":
        return DoctorCommand(), options
    return HelpCommand(), options


@dataclass
class Context:
    """Everything a handler needs, passed explicitly."""
    config: Config
    platform: Platform
    store: VersionStore
    env: Mapping[str, str]
    working_dir: Path
    resolver: FeedResolver
    installer: InstallCoordinator
    out: Callable[[str], None] = print


def build_context(
    options: Options,
    env: Mapping[str, str],
    working_dir: Path,
    platform: Platform | None = None,
) -> Context:
    """Wire configuration, platform and components together."""
    config = load_config(
        options.config_path, environ=dict(env), verbose=options.verbose, working_dir=working_dir,
    )
    if platform is None:
        platform = detect_platform()
    store = VersionStore(config.download_dir, executable_name=platform.executable_name)
    return Context(
        config=config,
        platform=platform,
        store=store,
        env=env,
        working_dir=working_dir,
        resolver=FeedResolver(config, platform),
        installer=InstallCoordinator(store, platform),
    )


def resolve_target(token: str, ctx: Context) -> ResolvedTarget:
    """
    Resolve a token, skipping the network when it names an installed version.

    A token equal to an installed directory name needs no download URL since
    ensure_installed will not fetch anything for it.
    """
    token = token.strip()
    if ctx.store.is_installed(token):
        logger.debug(f"{token} is installed, skipping resolution")
        return ResolvedTarget(download_url="", version=token)
    return ctx.resolver.resolve(token)


def handle_use(cmd: UseCommand, ctx: Context) -> int:
    path = ctx.store.local_pin_path(ctx.working_dir)
    if not cmd.local and path.exists():
        raise LocalPinExistsError(
            f"Local version file {path} exists and takes precedence over the global version.",
            f"Run 'funcvm use {cmd.version} --local' to update it.",
        )

    target = resolve_target(cmd.version, ctx)
    ctx.installer.ensure_installed(target)

    if cmd.local:
        path = ctx.store.write_local_pin(ctx.working_dir, target.version, overwrite=True)
        logger.debug(f"Pinned {target.version} in {path}")
    else:
        ctx.store.write_global_pin(target.version)

    override = ctx.env.get(VERSION_ENV_VAR)
    if override and override != target.version:
        logger.warning(f"{VERSION_ENV_VAR}={override} overrides this selection in the current shell.")

    ctx.out(f"Using {target.version}" + (" (local)" if cmd.local else ""))
    return 0


def handle_install(cmd: InstallCommand, ctx: Context) -> int:
    target = resolve_target(cmd.version, ctx)
    result = ctx.installer.ensure_installed(target)
    if result.downloaded:
        ctx.out(f"Installed {result.version} at {result.path}")
    else:
        ctx.out(f"{result.version} is already installed at {result.path}")
    return 0


def handle_list(cmd: ListCommand, ctx: Context) -> int:
    if cmd.remote:
        return _list_remote(ctx)

    for version in sort_versions(ctx.store.list_installed()):
        sources = version_sources(version, ctx.env, ctx.working_dir, ctx.store)
        ctx.out(render_installed_line(version, sources))

    active = effective_version(ctx.env, ctx.working_dir, ctx.store)
    if active is not None:
        logger.info(f"Active version: {active}")
    return 0


def _list_remote(ctx: Context) -> int:
    targets = ctx.resolver.list_remote()
    width = max((len(t.tag) for t in targets), default=0)
    for target in targets:
        sources = version_sources(target.version, ctx.env, ctx.working_dir, ctx.store)
        tags = remote_tags(sources, ctx.store.is_installed(target.version))
        ctx.out(render_remote_line(target.tag, target.version, tags, tag_width=width))
    return 0


def handle_remove(cmd: RemoveCommand, ctx: Context) -> int:
    sources = version_sources(cmd.version, ctx.env, ctx.working_dir, ctx.store)
    ctx.store.remove(cmd.version)
    ctx.out(f"Removed {cmd.version}")
    if sources:
        logger.warning(
            f"{cmd.version} is still selected ({', '.join(sources)}); "
            "run 'funcvm use <version>' to pick another version."
        )
    return 0


def handle_doctor(cmd: DoctorCommand, ctx: Context) -> int:
    validate_environment()
    return 0


def handle_help(cmd: HelpCommand, ctx: Context | None) -> int:
    print(HELP_TEXT)
    return 0


HANDLERS: dict[type, Callable[..., int]] = {
    UseCommand: handle_use,
    InstallCommand: handle_install,
    ListCommand: handle_list,
    RemoveCommand: handle_remove,
    DoctorCommand: handle_doctor,
    HelpCommand: handle_help,
}


def main(
    argv: list[str] | None = None,
    env: Mapping[str, str] | None = None,
    working_dir: Path | None = None,
    context: Context | None = None,
) -> int:
    """Main entry point for funcvm. Returns the process exit code."""
    if argv is None:
        argv = sys.argv[1:]
    if env is None:
        env = dict(os.environ)
    if working_dir is None:
        working_dir = Path.cwd()

    try:
        command, options = parse_command(argv)
    except FuncvmError as e:
        setup_logging()
        logger.error(e.format())
        return 1

    setup_logging(verbose=options.verbose or is_debug_enabled())

    if isinstance(command, HelpCommand):
        return handle_help(command, context)

    try:
        if context is None:
            context = build_context(options, env, working_dir)
        return HANDLERS[type(command)](command, context)
    except FuncvmError as e:
        logger.error(e.format())
        return 1
    except ValueError as e:
        logger.error(str(e))
        return 1


def run() -> None:
    """Console script entry point."""
    try:
        sys.exit(main())
    except KeyboardInterrupt:
        print("\nInterrupted", file=sys.stderr)
        sys.exit(130)


if __name__ == "__main__":
    run()

"""CLI entrypoint for cargo-ensure-prefix."""

import logging
import sys
from pathlib import Path

import click

from . import __version__

# cargo runs `cargo-ensure-prefix ensure-prefix ...` for `cargo ensure-prefix ...`
CARGO_SUBCOMMAND = "ensure-prefix"


def _configure_logging(verbose: bool) -> None:
    if not verbose:
        return

    from rich.console import Console
    from rich.logging import RichHandler

    logging.basicConfig(
        level=logging.DEBUG,
        format="%(message)s",
        handlers=[RichHandler(console=Console(stderr=True), show_path=False)],
        force=True,
    )


@click.command(context_settings={"help_option_names": ["-h", "--help"]})
@click.version_option(__version__, prog_name="cargo-ensure-prefix")
@click.option(
    "--manifest-path",
    required=True,
    envvar="ENSURE_PREFIX_MANIFEST_PATH",
    type=click.Path(path_type=Path),
    help="Path to the workspace or package Cargo.toml",
)
@click.option(
    "--prefix-path",
    required=True,
    envvar="ENSURE_PREFIX_PREFIX_PATH",
    type=click.Path(path_type=Path),
    help="File whose bytes every source file must start with (0x1A matches any byte)",
)
@click.option(
    "--package",
    "-p",
    "packages",
    multiple=True,
    metavar="NAME",
    help="Only check this package (repeatable)",
)
@click.option(
    "--all",
    "--workspace",
    "all_members",
    is_flag=True,
    help="Check every workspace member, not just the default members",
)
@click.option(
    "--exclude",
    "exclude",
    multiple=True,
    metavar="NAME",
    help="Skip this package in the default or --all selection (repeatable)",
)
@click.option(
    "--jobs",
    "-j",
    type=click.IntRange(min=1),
    default=1,
    show_default=True,
    envvar="ENSURE_PREFIX_JOBS",
    help="Number of threads used to check files",
)
@click.option(
    "--verbose",
    is_flag=True,
    help="Log workspace resolution and verification details to stderr",
)
def cli(
    manifest_path: Path,
    prefix_path: Path,
    packages: tuple[str, ...],
    all_members: bool,
    exclude: tuple[str, ...],
    jobs: int,
    verbose: bool,
) -> None:
    """Check that source files of workspace packages start with a prefix.

    Prints every source file that does not start with the contents of
    --prefix-path, one per line, sorted.

    \b
    Exit codes:
    - 0: every selected file starts with the prefix
    - 1: one or more files do not
    - 2: usage or setup error (message on stderr)

    Examples:

        cargo ensure-prefix --manifest-path Cargo.toml --prefix-path LICENSE_HEADER --all

        cargo ensure-prefix --manifest-path Cargo.toml --prefix-path LICENSE_HEADER -p wbin
    """
    from .commands.check import run_check

    _configure_logging(verbose)

    exit_code = run_check(
        manifest_path,
        prefix_path,
        all_members=all_members,
        packages=packages,
        exclude=exclude,
        jobs=jobs,
    )
    sys.exit(exit_code)


def main() -> None:
    """Main entrypoint."""
    args = sys.argv[1:]
    if args[:1] == [CARGO_SUBCOMMAND]:
        args = args[1:]
    cli(args=args, prog_name="cargo-ensure-prefix")


if __name__ == "__main__":
    main()

"""CLI entrypoint: parse the kmd grammar and route to a command handler."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import IO, Any, Dict, List, Optional, Tuple

import click

from . import __version__
from .config import KmdConfig, load_config
from .errors import KmdError, NonZeroExitError, ProcessTimeoutError
from .handlers import Commands
from .log import configure_logging, get_logger
from .process import ProcessRunner
from .ui import UI

logger = get_logger(__name__)

ALIASES: Dict[str, str] = {
    "x": "exec",
    "s": "shell",
    "t": "term",
    "i": "ide",
    "e": "edit",
    "o": "openf",
    "lo": "lopenf",
    "p": "play",
    "h": "hist",
    "de": "decomp",
    "d": "diff",
    "f": "fmgr",
}

EPILOG = """\b
Convenient way to use it from shell is through shortcuts (small scripts on
PATH named after the commands). These example commands do the same:
    $ kmd exec xclock
    $ exec xclock
    $ x xclock

\b
Next example:
    $ kmd edit ~/.bashrc
    $ e ~/.bashrc

\b
Next example:
    $ kmd shell cat ~/.profile
    $ s cat ~/.profile
"""

PASSTHROUGH = {"ignore_unknown_options": True, "allow_interspersed_args": False}


@dataclass
class AppEnv:
    ui: UI
    config: KmdConfig
    commands: Commands


class GrammarError(click.UsageError):
    """Usage error that shows the full help page instead of the short usage line."""

    def show(self, file: Optional[IO[Any]] = None) -> None:
        to_stderr = file is None
        color = self.ctx.color if self.ctx is not None else None
        if self.ctx is not None:
            click.echo(self.ctx.get_help(), file=file, err=to_stderr, color=color)
            click.echo("", file=file, err=to_stderr)
        click.echo(f"Error: {self.format_message()}", file=file, err=to_stderr, color=color)


class KmdGroup(click.Group):
    """Group with two-letter aliases and kmd's top-level error policy."""

    def get_command(self, ctx: click.Context, cmd_name: str) -> Optional[click.Command]:
        return super().get_command(ctx, ALIASES.get(cmd_name, cmd_name))

    def resolve_command(
        self, ctx: click.Context, args: List[str]
    ) -> Tuple[Optional[str], Optional[click.Command], List[str]]:
        _, cmd, rest = super().resolve_command(ctx, args)
        return (cmd.name if cmd else None), cmd, rest

    def format_commands(self, ctx: click.Context, formatter: click.HelpFormatter) -> None:
        by_name = {name: alias for alias, name in ALIASES.items()}
        rows = []
        for name in self.list_commands(ctx):
            cmd = self.get_command(ctx, name)
            if cmd is None or cmd.hidden:
                continue
            label = f"{name}, {by_name[name]}" if name in by_name else name
            rows.append((label, cmd.get_short_help_str(limit=formatter.width)))
        if rows:
            with formatter.section("Commands"):
                formatter.write_dl(rows)

    def list_commands(self, ctx: click.Context) -> List[str]:
        # Keep declaration order, it follows the usage grammar
        return list(self.commands)

    def parse_args(self, ctx: click.Context, args: List[str]) -> List[str]:
        try:
            return super().parse_args(ctx, args)
        except GrammarError:
            raise
        except click.UsageError as exc:
            raise GrammarError(exc.format_message(), exc.ctx or ctx) from exc

    def invoke(self, ctx: click.Context) -> Any:
        try:
            return super().invoke(ctx)
        except GrammarError:
            raise
        except click.UsageError as exc:
            raise GrammarError(exc.format_message(), exc.ctx or ctx) from exc
        except KmdError as exc:
            ctx.exit(_report(ctx, exc))


def _report(ctx: click.Context, exc: KmdError) -> int:
    env = ctx.obj if isinstance(ctx.obj, AppEnv) else None
    ui = env.ui if env else UI()
    if isinstance(exc, (NonZeroExitError, ProcessTimeoutError)):
        ui.lines(exc.output)
    ui.error(str(exc))
    logger.debug("command.failed", error=type(exc).__name__)
    if isinstance(exc, NonZeroExitError) and 0 < exc.exit_code < 256:
        return exc.exit_code
    return 1


def _commands(ctx: click.Context) -> Commands:
    return ctx.find_object(AppEnv).commands


@click.group(
    cls=KmdGroup,
    context_settings={"help_option_names": ["-h", "--help"]},
    invoke_without_command=True,
    epilog=EPILOG,
)
@click.version_option(__version__, "-v", "--version", prog_name="kmd", message="%(prog)s %(version)s")
@click.option("--config", "config_path", type=click.Path(path_type=Path), help="Path to config.json")
@click.option("--verbose", is_flag=True, help="Log every process launch to stderr")
@click.option("--json-logs", is_flag=True, help="Emit logs as JSON lines")
@click.pass_context
def cli(ctx: click.Context, config_path: Optional[Path], verbose: bool, json_logs: bool) -> None:
    """Collection of my custom commands.

    Each command hands its arguments to the best desktop program for the job
    (editor, terminal, media player, archiver, file opener).
    """
    configure_logging(verbose=verbose, json_logs=json_logs, command=ctx.invoked_subcommand)
    ui = UI()
    config = load_config(config_path)
    runner = ProcessRunner(timeout=config.timeout)
    ctx.obj = AppEnv(ui=ui, config=config, commands=Commands(config, runner=runner, ui=ui))
    if ctx.invoked_subcommand is None:
        click.echo(ctx.get_help())


@cli.command("exec", context_settings=PASSTHROUGH)
@click.argument("subcmd")
@click.argument("args", nargs=-1, type=click.UNPROCESSED)
@click.pass_context
def exec_command(ctx: click.Context, subcmd: str, args: Tuple[str, ...]) -> None:
    """Exec given command in new process (and return immediately)."""
    _commands(ctx).exec_(subcmd, args)


@cli.command("shell", context_settings=PASSTHROUGH)
@click.argument("subcmd")
@click.argument("args", nargs=-1, type=click.UNPROCESSED)
@click.pass_context
def shell_command(ctx: click.Context, subcmd: str, args: Tuple[str, ...]) -> None:
    """Exec given command in bash shell, wait for it, then print its output."""
    _commands(ctx).shell(subcmd, args)


@cli.command("term")
@click.pass_context
def term_command(ctx: click.Context) -> None:
    """Run the default terminal emulator in new process."""
    _commands(ctx).term()


@cli.command("ide")
@click.argument("file")
@click.pass_context
def ide_command(ctx: click.Context, file: str) -> None:
    """Open file in IDE."""
    _commands(ctx).ide(file)


@cli.command("edit")
@click.argument("file")
@click.pass_context
def edit_command(ctx: click.Context, file: str) -> None:
    """Run the best text editor (or open a file in existing instance)."""
    _commands(ctx).edit(file)


@cli.command("openf")
@click.argument("file")
@click.pass_context
def openf_command(ctx: click.Context, file: str) -> None:
    """Open file using best program available for given file type."""
    _commands(ctx).openf(file)


@cli.command("lopenf")
@click.argument("file")
@click.option("-n", "--lines", type=click.IntRange(min=1), default=1, show_default=True, help="How many links to read")
@click.pass_context
def lopenf_command(ctx: click.Context, file: str, lines: int) -> None:
    """Open file specified inside given file using best program available."""
    _commands(ctx).lopenf(file, lines)


@cli.command("play")
@click.argument("file")
@click.pass_context
def play_command(ctx: click.Context, file: str) -> None:
    """Play given multimedia file."""
    _commands(ctx).play(file)


@cli.command("hist")
@click.argument("commands", nargs=-1)
@click.pass_context
def hist_command(ctx: click.Context, commands: Tuple[str, ...]) -> None:
    """Adds given commands to bash history so they are available in new terminals under up key."""
    _commands(ctx).hist(commands)


@cli.command("decomp")
@click.argument("file")
@click.argument("directory", metavar="[DIR]", required=False)
@click.pass_context
def decomp_command(ctx: click.Context, file: str, directory: Optional[str]) -> None:
    """Decompress archive file. Supports all most popular archive types."""
    _commands(ctx).decomp(file, directory)


@cli.command("diff")
@click.argument("file1")
@click.argument("file2")
@click.argument("file3", required=False)
@click.pass_context
def diff_command(ctx: click.Context, file1: str, file2: str, file3: Optional[str]) -> None:
    """Run the best text editor in diff mode."""
    _commands(ctx).diff(file1, file2, file3)


@cli.command("fmgr")
@click.argument("directory", metavar="DIR")
@click.pass_context
def fmgr_command(ctx: click.Context, directory: str) -> None:
    """Run the best file manager (or open a directory in an existing instance)."""
    _commands(ctx).fmgr(directory)


def main() -> None:
    cli(prog_name="kmd")


__all__ = ["ALIASES", "AppEnv", "GrammarError", "KmdGroup", "cli", "main"]

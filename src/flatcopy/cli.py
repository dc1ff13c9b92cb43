"""CLI entrypoint for flatcopy."""

from __future__ import annotations

import time
from pathlib import Path

import click
from pydantic import ValidationError

from flatcopy.config.models import FlattenSettings, default_concurrency
from flatcopy.progress import RichProgressSink
from flatcopy.runner import SetupError, flatten_tree
from flatcopy.runtime_logging import configure_runtime_logging

_TRUE_VALUES = {"1", "t", "true"}
_FALSE_VALUES = {"0", "f", "false"}


def _parse_bool(value: str) -> bool:
    normalized = value.strip().lower()
    if normalized in _TRUE_VALUES:
        return True
    if normalized in _FALSE_VALUES:
        return False
    raise ValueError(value)


class GoFlagCommand(click.Command):
    """Command that also accepts Go-style ``-name=value`` and ``--name`` flags.

    ``-x=out`` becomes ``-x out``, ``-time=false`` drops the flag, and a
    double-dash spelling of a single-dash option (``--x``) maps onto it.
    """

    def parse_args(self, ctx: click.Context, args: list[str]) -> list[str]:
        return super().parse_args(ctx, self._normalize(ctx, args))

    def _normalize(self, ctx: click.Context, args: list[str]) -> list[str]:
        options: dict[str, click.Option] = {}
        for param in self.get_params(ctx):
            if isinstance(param, click.Option):
                for opt in param.opts:
                    options[opt] = param

        normalized: list[str] = []
        for index, arg in enumerate(args):
            if arg == "--":
                normalized.extend(args[index:])
                break
            if not arg.startswith("-"):
                normalized.append(arg)
                continue

            name, sep, value = arg.partition("=")
            if name not in options and name.startswith("--") and name[1:] in options:
                name = name[1:]
            param = options.get(name)
            if param is None:
                normalized.append(arg)
            elif not sep:
                normalized.append(name)
            elif param.is_flag:
                try:
                    enabled = _parse_bool(value)
                except ValueError:
                    raise click.BadParameter(
                        f"invalid boolean value {value!r}", ctx=ctx, param=param
                    ) from None
                if enabled:
                    normalized.append(name)
            else:
                normalized.extend([name, value])
        return normalized


@click.command(cls=GoFlagCommand, context_settings={"help_option_names": ["-h", "--help"]})
@click.option("-x", "--output", "output_dir", default="output", show_default=True, help="Output directory")
@click.option("-prefix", "--prefix", "prefix", default="", help="Prefix all entries with the provided value")
@click.option(
    "-c",
    "--cores",
    "max_concurrency",
    type=click.IntRange(min=1),
    default=default_concurrency,
    show_default="number of CPUs",
    help="Maximum number of simultaneous copy operations",
)
@click.option("-time", "--time", "report_time", is_flag=True, help="Time program execution")
@click.option("--log-level", default=None, help="Runtime log level (off, error, warning, info, debug)")
@click.option("--log-file", type=click.Path(dir_okay=False), default=None, help="Write runtime logs to this file")
def main(
    output_dir: str,
    prefix: str,
    max_concurrency: int,
    report_time: bool,
    log_level: str | None,
    log_file: str | None,
) -> None:
    """Copy every file below the current directory into one flat directory.

    Each copy is named after its relative path, with separators replaced by
    underscores.
    """
    started = time.perf_counter()
    logger = configure_runtime_logging(level=log_level, log_file=log_file)

    try:
        settings = FlattenSettings(
            output_dir=output_dir,
            prefix=prefix,
            max_concurrency=max_concurrency,
            report_time=report_time,
        )
    except ValidationError as exc:
        raise click.UsageError(str(exc)) from None

    if settings.report_time:
        logger.info("run.timed")

    try:
        root = Path.cwd()
    except OSError as exc:
        raise click.ClickException(f"cannot read working directory: {exc}") from None

    try:
        with RichProgressSink() as progress:
            flatten_tree(root, settings, progress=progress, logger=logger)
    except SetupError as exc:
        raise click.ClickException(str(exc)) from None

    if settings.report_time:
        elapsed = time.perf_counter() - started
        logger.info("run.elapsed", seconds=round(elapsed, 3))
        click.echo(f"finished execution, time elapsed: {elapsed:.2f}s", err=True)


if __name__ == "__main__":
    main()

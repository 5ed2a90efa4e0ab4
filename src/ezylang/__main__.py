## Copyright © 2025, Alex J. Champandard.  Licensed under AGPLv3; see LICENSE! ⚘
#
# ezylang — A small, statically-checked scripting language interpreted in a single pass.
#

import sys
import time
from pathlib import Path
from dataclasses import dataclass

import click

from .errors import EzyError
from .formatting import write_without_ansi, format_diagnostic, show_tokens
from .runtime import Runtime


USAGE = "Usage: ezylang [OPTIONS] <source file>"
EXTENSION = '.ezy'


@dataclass(frozen=True)
class RuntimeConfig:
    verbose: int
    strict: bool
    tokens: bool
    stats: bool
    plain: bool


class EzyRunner:
    def __init__(self, config: RuntimeConfig):
        self.verbose = config.verbose
        self.show_tokens = config.tokens
        self.stats_enabled = config.stats
        self.plain = config.plain

        if self.plain:
            sys.stdout.write = write_without_ansi(sys.stdout.write)
            sys.stderr.write = write_without_ansi(sys.stderr.write)

        self.runtime = Runtime(strict=config.strict)
        self.total_stats = {'steps': 0, 'start': time.time()} if self.stats_enabled else None
        self.failure = False

    def _handle_exception(self, exc: Exception) -> None:
        if isinstance(exc, EzyError):
            print(format_diagnostic(exc), file=sys.stderr)
        else:
            print(exc, file=sys.stderr)
        self.failure = True

    def execute_file(self, path: Path) -> None:
        try:
            source = path.read_text(encoding='utf-8')
        except OSError as exc:
            return self._handle_exception(exc)

        try:
            if self.show_tokens:
                show_tokens(self.runtime.tokenize(source), file=sys.stdout)
            self.runtime.run(source, filename=str(path), verbosity=self.verbose, stats=self.total_stats)
        except EzyError as exc:
            sys.stdout.flush()
            self._handle_exception(exc)

    def finalize(self) -> int:
        if self.total_stats is not None:
            elapsed_time = time.time() - self.total_stats['start']
            print(f"\n\033[97m\033[48;5;30m STATISTICS. \033[0m")
            print(f"step\t\033[97m{self.total_stats['steps']:,}\033[0m")
            print(f"time\t\033[97m{elapsed_time:.3f}s\033[0m")
        return 1 if self.failure else 0


@click.command(context_settings={'ignore_unknown_options': True})
@click.option('--verbose', '-v', default=0, count=True, help='Trace executed statements to stderr; repeat to trace nested ones.')
@click.option('--strict', is_flag=True, envvar='EZY_STRICT', help='Report stray characters instead of skipping them.')
@click.option('--tokens', is_flag=True, help='Print the token sequence before executing.')
@click.option('--stats', is_flag=True, help='Display execution statistics (e.g., number of statements).')
@click.option('--plain', '-p', is_flag=True, help='Strip ANSI color codes from all output.')
@click.argument('files', nargs=-1)
@click.pass_context
def cli(ctx: click.Context, verbose: int, strict: bool, tokens: bool, stats: bool, plain: bool, files: tuple[str, ...]) -> None:
    if len(files) != 1:
        print(USAGE)
        ctx.exit(1)

    path = Path(files[0])
    if path.suffix != EXTENSION:
        print(f"Invalid file extension: Must be '{EXTENSION}'", file=sys.stderr)
        ctx.exit(1)

    config = RuntimeConfig(verbose=verbose, strict=strict, tokens=tokens, stats=stats, plain=plain)
    runner = EzyRunner(config)
    runner.execute_file(path)
    ctx.exit(runner.finalize())


def main(argv: list[str] | None = None) -> None:
    cli.main(args=list(sys.argv[1:] if argv is None else argv), prog_name='ezylang')


if __name__ == "__main__":
    main()

from __future__ import annotations

import logging
from contextlib import ExitStack
from pathlib import Path
from typing import Any, Dict, List, Optional

import typer
from rich.console import Console
from rich.markup import escape
from rich.table import Table
from rich.theme import Theme

from .config import resolve_config, scanner_params
from .curves import CurveArena
from .document import (
    dash_array_for,
    dash_offset_for,
    iter_path_elements,
    iter_path_programs,
    program_for,
)
from .filters import DashFilter, ProgramCurveSource
from .flatten import flatten_program
from .mappedfile import open_mapped
from .numbers import parse_number_list
from .pathprogram import bounding_box, format_path_program
from .timing import Timings
from .xmlscan import XmlScanner
from .xmltoken import XmlTokenizer


# named explicitly: under `python -m` the module is __main__
log = logging.getLogger("pathscan.cli")

EXCERPT_CHARS = 60


class Logger:
    def __init__(self, verbose: bool) -> None:
        self.verbose = verbose
        theme = Theme({
            "info": "cyan",
            "warning": "bold yellow",
            "error": "bold red",
        })
        self.console = Console(theme=theme, highlight=False, record=False)
        self.err_console = Console(theme=theme, highlight=False, record=False, stderr=True)

    def _print(self, message: str, style: str | None = None, *, err: bool = False) -> None:
        target = self.err_console if err else self.console
        if style:
            target.print(f"[{style}]{message}[/{style}]")
        else:
            target.print(message)

    def info(self, message: str) -> None:
        self._print(message, style="info")

    def warn(self, message: str) -> None:
        self._print(message, style="warning")

    def error(self, message: str) -> None:
        self._print(message, style="error", err=True)

    def debug(self, message: str) -> None:
        if self.verbose:
            self.console.print(f"[dim]{message}[/dim]")


class _LoggingBridge(logging.Handler):
    def __init__(self, cli_logger: Logger, level: int) -> None:
        super().__init__(level)
        self._cli_logger = cli_logger

    def emit(self, record: logging.LogRecord) -> None:  # type: ignore[override]
        msg = escape(self.format(record))
        if record.levelno >= logging.ERROR:
            self._cli_logger.error(msg)
        elif record.levelno >= logging.WARNING:
            self._cli_logger.warn(msg)
        elif record.levelno >= logging.INFO:
            self._cli_logger.info(msg)
        else:
            self._cli_logger.debug(msg)


def _attach_logging(logger: Logger, verbose: bool) -> None:
    log_level = logging.DEBUG if verbose else logging.INFO
    package_logger = logging.getLogger("pathscan")
    package_logger.setLevel(log_level)
    package_logger.propagate = False
    for handler in list(package_logger.handlers):
        if isinstance(handler, _LoggingBridge):
            package_logger.removeHandler(handler)
    bridge = _LoggingBridge(logger, log_level)
    bridge.setFormatter(logging.Formatter("%(message)s"))
    package_logger.addHandler(bridge)


def _handle_known_exception(logger: Logger, exc: Exception, *, prefix: str | None = None) -> None:
    message = str(exc) if str(exc) else exc.__class__.__name__
    if prefix:
        message = f"{prefix}: {message}"
    logger.error(message)


def _excerpt(span) -> str:
    text = span.text().replace("\n", " ")
    if len(text) > EXCERPT_CHARS:
        return text[: EXCERPT_CHARS - 1] + "…"
    return text


class _Run:
    """Shared per-command setup: logging, config and optional timings."""

    def __init__(self, config: Optional[Path], verbose: bool, timings: bool) -> None:
        self.logger = Logger(verbose=verbose)
        _attach_logging(self.logger, verbose)
        self.timings = Timings() if timings else None
        self._config_path = config
        self.cfg: Dict[str, Any] = {}

    def load(self) -> Dict[str, Any]:
        with self.section("config"):
            self.cfg = resolve_config(self._config_path)
        return self.cfg

    def section(self, name: str):
        if self.timings is None:
            return ExitStack()
        return self.timings.section(name)

    def report(self) -> None:
        if self.timings is not None:
            self.logger.console.print(self.timings.table())


app = typer.Typer(help="Byte-level SVG scanning and path tooling")

_CONFIG_OPTION = typer.Option(None, "--config", help="YAML file merged over the built-in defaults")
_VERBOSE_OPTION = typer.Option(False, "--verbose", "-v", help="Show debug log lines")
_TIMINGS_OPTION = typer.Option(False, "--timings", help="Print per-stage timings")


@app.command("elements")
def elements(
    file: Path = typer.Argument(..., help="SVG or XML file"),
    config: Optional[Path] = _CONFIG_OPTION,
    verbose: bool = _VERBOSE_OPTION,
    timings: bool = _TIMINGS_OPTION,
) -> None:
    """List the scanned XML elements."""
    run = _Run(config, verbose, timings)
    try:
        cfg = run.load()
        table = Table(title=str(file))
        table.add_column("#", justify="right")
        table.add_column("kind")
        table.add_column("name")
        table.add_column("data")
        with open_mapped(file) as source, run.section("scan"):
            scanner = XmlScanner(source, scanner_params(cfg))
            count = 0
            for elem in scanner:
                table.add_row(str(count), elem.kind.name, escape(elem.name_span.text()), escape(_excerpt(elem.data)))
                count += 1
            error = scanner.error
        run.logger.console.print(table)
        if error is not None:
            run.logger.warn(f"Scan stopped early: {escape(error)}")
        run.logger.info(f"{count} elements")
        run.report()
    except (FileNotFoundError, ValueError) as exc:
        _handle_known_exception(run.logger, exc, prefix="Error")
        raise typer.Exit(code=2) from exc


@app.command("tokens")
def tokens(
    file: Path = typer.Argument(..., help="SVG or XML file"),
    config: Optional[Path] = _CONFIG_OPTION,
    verbose: bool = _VERBOSE_OPTION,
    timings: bool = _TIMINGS_OPTION,
) -> None:
    """Print the raw token stream."""
    run = _Run(config, verbose, timings)
    try:
        run.load()
        with open_mapped(file) as source, run.section("tokenize"):
            tokenizer = XmlTokenizer(source)
            rows = [(tok.type.name, tok.value.text()) for tok in tokenizer]
            error = tokenizer.error
        for kind, value in rows:
            typer.echo(f"{kind:8s} {value!r}")
        if error is not None:
            run.logger.warn(f"Tokenizer stopped early: {error}")
        run.report()
    except (FileNotFoundError, ValueError) as exc:
        _handle_known_exception(run.logger, exc, prefix="Error")
        raise typer.Exit(code=2) from exc


@app.command("paths")
def paths(
    file: Path = typer.Argument(..., help="SVG file"),
    precision: int = typer.Option(3, "--precision", min=0, show_default=True, help="Decimal places"),
    bbox: bool = typer.Option(False, "--bbox", help="Also print the bounding box of each path"),
    config: Optional[Path] = _CONFIG_OPTION,
    verbose: bool = _VERBOSE_OPTION,
    timings: bool = _TIMINGS_OPTION,
) -> None:
    """Print the normalized path data of every path element."""
    run = _Run(config, verbose, timings)
    try:
        cfg = run.load()
        reinject = bool(cfg["path"]["reinject_moveto_after_close"])
        count = 0
        with open_mapped(file) as source:
            for _, program in iter_path_programs(source, reinject, scanner_params(cfg)):
                with run.section("format"):
                    typer.echo(format_path_program(program, precision))
                if bbox:
                    with run.section("bbox"):
                        box = bounding_box(program)
                    if box is None:
                        typer.echo("  bbox: empty")
                    else:
                        x, y, w, h = box
                        typer.echo(f"  bbox: {x:.{precision}f} {y:.{precision}f} {w:.{precision}f} {h:.{precision}f}")
                count += 1
        run.logger.info(f"{count} paths")
        run.report()
    except (FileNotFoundError, ValueError) as exc:
        _handle_known_exception(run.logger, exc, prefix="Error")
        raise typer.Exit(code=2) from exc


@app.command("dash")
def dash(
    file: Path = typer.Argument(..., help="SVG file"),
    pattern: Optional[str] = typer.Option(
        None,
        "--pattern",
        help="Dash and gap lengths, e.g. '4,2'; defaults to each path's stroke-dasharray",
    ),
    visible_only: Optional[bool] = typer.Option(
        None,
        "--visible-only/--all",
        help="Drop the gaps, or list every piece; defaults to the config value",
    ),
    config: Optional[Path] = _CONFIG_OPTION,
    verbose: bool = _VERBOSE_OPTION,
    timings: bool = _TIMINGS_OPTION,
) -> None:
    """List the dash pieces of every path curve."""
    run = _Run(config, verbose, timings)
    try:
        cfg = run.load()
        dash_cfg = cfg["dash"]
        curve_cfg = cfg["curves"]
        if visible_only is None:
            visible_only = bool(dash_cfg["visible_only"])
        fixed: Optional[List[float]] = None
        if pattern is not None:
            fixed = parse_number_list(pattern)
            if not fixed:
                raise ValueError(f"Invalid dash pattern: {pattern!r}")

        table = Table(title=f"Dashes in {file.name}")
        for column in ("path", "curve", "t0", "t1", "visible", "from", "to"):
            table.add_column(column, justify="right")
        reinject = bool(cfg["path"]["reinject_moveto_after_close"])
        with open_mapped(file) as source:
            for index, (elem, d) in enumerate(iter_path_elements(source, scanner_params(cfg))):
                dashes = fixed if fixed is not None else dash_array_for(elem)
                if dashes is None:
                    log.debug("path %d has no dash pattern", index)
                    continue
                offset = float(dash_cfg["offset"]) if fixed is not None else dash_offset_for(elem)
                program = program_for(d, reinject)
                arena = CurveArena()
                with run.section("dash"):
                    pieces = list(
                        DashFilter(
                            arena,
                            ProgramCurveSource(program, arena, int(curve_cfg["length_steps"])),
                            dashes,
                            arc_steps=int(dash_cfg["arc_steps"]),
                            offset=offset,
                            visible_only=visible_only,
                            max_iterations=int(curve_cfg["max_iterations"]),
                        )
                    )
                for seg in pieces:
                    table.add_row(
                        str(index),
                        str(seg.handle),
                        f"{seg.t0:.4f}",
                        f"{seg.t1:.4f}",
                        "yes" if seg.visible else "no",
                        f"{seg.arc_start:.3f}",
                        f"{seg.arc_end:.3f}",
                    )
        run.logger.console.print(table)
        run.report()
    except (FileNotFoundError, ValueError) as exc:
        _handle_known_exception(run.logger, exc, prefix="Error")
        raise typer.Exit(code=2) from exc


@app.command("flatten")
def flatten(
    file: Path = typer.Argument(..., help="SVG file"),
    tolerance: Optional[float] = typer.Option(
        None, "--tolerance", help="Maximum chord deviation; defaults to the config value"
    ),
    config: Optional[Path] = _CONFIG_OPTION,
    verbose: bool = _VERBOSE_OPTION,
    timings: bool = _TIMINGS_OPTION,
) -> None:
    """Print every subpath as a polyline."""
    run = _Run(config, verbose, timings)
    try:
        cfg = run.load()
        tol = float(cfg["flatten"]["tolerance"] if tolerance is None else tolerance)
        reinject = bool(cfg["path"]["reinject_moveto_after_close"])
        with open_mapped(file) as source:
            for index, (_, program) in enumerate(iter_path_programs(source, reinject, scanner_params(cfg))):
                with run.section("flatten"):
                    polylines = flatten_program(program, tol)
                for poly in polylines:
                    coords = " ".join(f"{x:.3f},{y:.3f}" for x, y in poly)
                    typer.echo(f"{index}: {coords}")
        run.report()
    except (FileNotFoundError, ValueError) as exc:
        _handle_known_exception(run.logger, exc, prefix="Error")
        raise typer.Exit(code=2) from exc


def main() -> None:
    app()


if __name__ == "__main__":
    main()

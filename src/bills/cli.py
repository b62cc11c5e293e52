"""CLI entrypoint — bills session, bills new-period, bills output, bills status."""

from __future__ import annotations

import logging
from pathlib import Path

import click

from bills.config import DEFAULTS, load_config, save_config_value
from bills.earnings import format_elapsed, validate_hourly_rate
from bills.errors import BillsError
from bills.models import round_half_up
from bills.recorder import SessionRecorder
from bills.render import compile_pdf, to_csv, to_latex
from bills.store import load_log, save_log
from bills.terminal import KeyboardInput, LiveFrameRenderer


def _fail(exc: Exception) -> None:
    click.echo(f"Error: {exc}", err=True)
    raise SystemExit(1)


@click.group()
@click.option(
    "--bills-path",
    type=click.Path(dir_okay=False, path_type=Path),
    envvar="BILLS_PATH",
    default=None,
    help="Bills JSON file (default: ~/bills.json).",
)
@click.option(
    "--config",
    "config_path",
    type=click.Path(dir_okay=False, path_type=Path),
    envvar="BILLS_CONFIG",
    default=None,
    help="YAML config file (default: ~/.config/bills/config.yaml).",
)
@click.option("--verbose", "-v", is_flag=True, help="Enable verbose logs.")
@click.pass_context
def cli(ctx: click.Context, bills_path: Path | None, config_path: Path | None, verbose: bool):
    """bills — time your work sessions and invoice them by period."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s %(message)s",
    )
    try:
        config = load_config(config_path)
    except BillsError as exc:
        _fail(exc)

    ctx.obj = {
        "config": config,
        "config_path": config_path,
        "bills_path": bills_path.expanduser() if bills_path else config.bills_path,
    }


@cli.command()
@click.argument("hourly_rate", required=False, type=float, envvar="HOURLY_RATE")
@click.option(
    "--catch-up",
    type=click.FloatRange(min=0),
    default=0.0,
    help="Minutes already worked before starting the timer.",
)
@click.pass_obj
def session(obj: dict, hourly_rate: float | None, catch_up: float):
    """Time a work session. Type a note and press Enter to tag; Esc to stop."""
    config = obj["config"]
    bills_path = obj["bills_path"]
    rate = hourly_rate if hourly_rate is not None else config.hourly_rate

    try:
        # Fail on a bad rate or unreadable store before taking over the terminal
        recorder = SessionRecorder(rate, catch_up_minutes=catch_up)
        log = load_log(bills_path)
        with KeyboardInput() as keys, LiveFrameRenderer() as renderer:
            finished = recorder.run(keys, renderer)
        log.append_session(finished)
        save_log(log, bills_path)
    except BillsError as exc:
        _fail(exc)

    click.echo(
        f"Recorded {format_elapsed(finished.duration_seconds())} "
        f"at ${finished.hourly_rate:.2f}/h. Earned: ${finished.earned():.2f}."
    )
    if finished.tags:
        click.echo(f"Tags: {', '.join(tag.note for tag in finished.tags)}")


@cli.command("new-period")
@click.pass_obj
def new_period(obj: dict):
    """Close the current billing period and start an empty one."""
    bills_path = obj["bills_path"]
    try:
        log = load_log(bills_path)
        log.start_new_period()
        save_log(log, bills_path)
    except BillsError as exc:
        _fail(exc)
    click.echo(f"Started period {len(log.periods)}.")


@cli.command()
@click.argument("format", type=click.Choice(["pdf", "csv"], case_sensitive=False))
@click.option(
    "--period",
    "period_number",
    type=click.IntRange(min=1),
    default=None,
    help="Period number to render (default: the current period).",
)
@click.option(
    "--output-dir",
    type=click.Path(file_okay=False, path_type=Path),
    default=None,
    help="Directory for output files (default: config output_dir).",
)
@click.pass_obj
def output(obj: dict, format: str, period_number: int | None, output_dir: Path | None):
    """Render a billing period as a PDF invoice or CSV."""
    config = obj["config"]
    out_dir = output_dir or config.output_dir

    try:
        log = load_log(obj["bills_path"])
        if period_number is None:
            period = log.current_period()
        else:
            try:
                period = log.period(period_number)
            except IndexError as exc:
                raise click.BadParameter(str(exc), param_hint="--period") from exc

        if format.lower() == "csv":
            contents = to_csv(period)
            out_dir.mkdir(parents=True, exist_ok=True)
            csv_path = out_dir / "output.csv"
            csv_path.write_text(contents)
            click.echo(f"Wrote {csv_path}")
            return

        latex = to_latex(period, name=config.name)
        out_dir.mkdir(parents=True, exist_ok=True)
        tex_path = out_dir / "output.tex"
        tex_path.write_text(latex)
        click.echo(f"Wrote {tex_path}")
        pdf_path = compile_pdf(tex_path)
        click.echo(f"Wrote {pdf_path}")
    except BillsError as exc:
        _fail(exc)
    except OSError as exc:
        _fail(exc)


@cli.command()
@click.pass_obj
def status(obj: dict):
    """Print the current period's sessions and totals."""
    try:
        log = load_log(obj["bills_path"])
    except BillsError as exc:
        _fail(exc)

    period = log.current_period()
    number = len(log.periods)
    if not period.sessions:
        click.echo(f"Period {number}: no sessions yet.")
    else:
        click.echo(
            f"Period {number}: {len(period.sessions)} sessions, "
            f"{round_half_up(period.hours()):.1f} hours, ${period.earned():.2f} earned."
        )
        for entry, s in zip(period.render_rows(), period.sessions):
            activity = f"  {entry.work_activity}" if entry.work_activity else ""
            click.echo(
                f"  {entry.date} {entry.time_began:%H:%M}-{entry.time_completed:%H:%M} "
                f"{entry.hours:.1f}h ${s.earned():.2f}{activity}"
            )

    if len(log.periods) > 1:
        click.echo(
            f"\nAll periods: {round_half_up(log.hours()):.1f} hours, ${log.earned():.2f} earned."
        )


@cli.command()
@click.argument("key", type=click.Choice(list(DEFAULTS)))
@click.argument("value")
@click.pass_obj
def configure(obj: dict, key: str, value: str):
    """Store a default setting (e.g. hourly_rate, name) in the config file."""
    stored: object = value
    try:
        if key == "hourly_rate":
            stored = validate_hourly_rate(value)
        save_config_value(key, stored, obj["config_path"])
    except BillsError as exc:
        _fail(exc)
    click.echo(f"Set {key} = {stored}")

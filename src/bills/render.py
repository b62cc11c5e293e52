"""Invoice rendering — pure text output from a Period, plus an optional PDF compile step."""

from __future__ import annotations

import csv
import io
import logging
import shutil
import subprocess
from pathlib import Path

from bills.errors import RenderError
from bills.models import LogEntry, Period, round_half_up

logger = logging.getLogger(__name__)

PDF_COMPILER = "tectonic"

CSV_HEADER = ["date", "time_began", "time_completed", "work_activity", "hours"]

TIME_FMT = "%H:%M"

LATEX_TEMPLATE = r"""\documentclass[11pt]{{article}}
\usepackage[margin=1in]{{geometry}}
\usepackage{{longtable}}
\usepackage{{booktabs}}
\pagestyle{{empty}}

\begin{{document}}

\begin{{flushleft}}
{{\Large\bfseries Invoice}}\\[0.5em]
{name}\\
Billing period: {start_date} to {end_date}
\end{{flushleft}}

\begin{{longtable}}{{l l l p{{0.45\textwidth}} r}}
\toprule
Date & Began & Completed & Work Activity & Hours \\
\midrule
\endhead
{rows}
\midrule
 & & & Total hours & {total_hours:.1f} \\
\bottomrule
\end{{longtable}}

\begin{{flushright}}
{{\bfseries Amount due: \${earned:.2f}}}
\end{{flushright}}

\end{{document}}
"""

_LATEX_SPECIALS = {
    "\\": r"\textbackslash{}",
    "&": r"\&",
    "%": r"\%",
    "$": r"\$",
    "#": r"\#",
    "_": r"\_",
    "{": r"\{",
    "}": r"\}",
    "~": r"\textasciitilde{}",
    "^": r"\textasciicircum{}",
}


def escape_latex(text: str) -> str:
    return "".join(_LATEX_SPECIALS.get(ch, ch) for ch in text)


def to_latex(period: Period, name: str = "") -> str:
    """Render `period` as a LaTeX invoice. Raises EmptyPeriodError for an empty period."""
    entries = period.render_rows()
    rows = "\n".join(_latex_row(entry) for entry in entries)
    return LATEX_TEMPLATE.format(
        name=escape_latex(name),
        start_date=period.start_date().isoformat(),
        end_date=period.end_date().isoformat(),
        rows=rows,
        total_hours=round_half_up(period.hours()),
        earned=period.earned(),
    )


def _latex_row(entry: LogEntry) -> str:
    return (
        f"{entry.date.isoformat()} & {entry.time_began.strftime(TIME_FMT)} & "
        f"{entry.time_completed.strftime(TIME_FMT)} & "
        f"{escape_latex(entry.work_activity)} & {entry.hours:.1f} \\\\"
    )


def to_csv(period: Period) -> str:
    """Render `period` as CSV rows with a header line."""
    entries = period.render_rows()
    buffer = io.StringIO()
    writer = csv.writer(buffer, lineterminator="\n")
    writer.writerow(CSV_HEADER)
    for entry in entries:
        writer.writerow(
            [
                entry.date.isoformat(),
                entry.time_began.strftime(TIME_FMT),
                entry.time_completed.strftime(TIME_FMT),
                entry.work_activity,
                f"{entry.hours:.1f}",
            ]
        )
    return buffer.getvalue()


def compile_pdf(tex_path: Path) -> Path:
    """Compile a .tex file next to itself and return the PDF path."""
    tex_path = Path(tex_path)
    compiler = shutil.which(PDF_COMPILER)
    if compiler is None:
        raise RenderError(
            f"'{PDF_COMPILER}' not found on PATH; the LaTeX source is at {tex_path}."
        )

    logger.info("Compiling %s with %s", tex_path, compiler)
    result = subprocess.run(
        [compiler, "--outdir", str(tex_path.parent), str(tex_path)],
        capture_output=True,
        text=True,
    )
    if result.returncode != 0:
        raise RenderError(
            f"{PDF_COMPILER} failed with exit code {result.returncode}:\n{result.stderr.strip()}"
        )
    return tex_path.with_suffix(".pdf")

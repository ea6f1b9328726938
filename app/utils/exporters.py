"""CSV and PDF renderers for election results."""

from __future__ import annotations

import csv
import io
from collections.abc import Sequence
from typing import Any

from fpdf import FPDF
from fpdf.enums import XPos, YPos

CSV_FIELDS = ("name", "position", "voteCount", "createdAt")


def _latin1(text: str) -> str:
    # Core PDF fonts only cover latin-1.
    return text.encode("latin-1", "replace").decode("latin-1")


def result_rows(candidates: Sequence[dict[str, Any]]) -> list[dict[str, Any]]:
    """Project candidate snapshots onto the export column set."""
    return [
        {
            "name": candidate.get("name", ""),
            "position": candidate.get("position", ""),
            "voteCount": candidate.get("vote_count", 0),
            "createdAt": candidate.get("created_at", ""),
        }
        for candidate in candidates
    ]


def render_csv(candidates: Sequence[dict[str, Any]]) -> str:
    """Render results as CSV with a header row."""
    buffer = io.StringIO()
    writer = csv.DictWriter(buffer, fieldnames=CSV_FIELDS, lineterminator="\n")
    writer.writeheader()
    writer.writerows(result_rows(candidates))
    return buffer.getvalue()


def result_lines(candidates: Sequence[dict[str, Any]]) -> list[str]:
    """One text line per candidate, in the given order."""
    return [
        f"{index}. {row['name']} | Position: {row['position']} | "
        f"Votes: {row['voteCount']} | Created: {row['createdAt']}"
        for index, row in enumerate(result_rows(candidates), start=1)
    ]


def render_pdf(title: str, candidates: Sequence[dict[str, Any]]) -> bytes:
    """Render results as a plain-text PDF document."""
    pdf = FPDF()
    pdf.add_page()
    pdf.set_font("Helvetica", style="U", size=18)
    pdf.cell(0, 12, _latin1(title), new_x=XPos.LMARGIN, new_y=YPos.NEXT)
    pdf.ln(4)
    pdf.set_font("Helvetica", size=12)
    for line in result_lines(candidates):
        pdf.multi_cell(0, 8, _latin1(line), new_x=XPos.LMARGIN, new_y=YPos.NEXT)
    return bytes(pdf.output())

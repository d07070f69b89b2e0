"""CSV export of ranked problems."""

from __future__ import annotations

import csv
import io
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Sequence

    from problemscout.models.problem import Problem

CSV_COLUMNS = [
    "position",
    "rank",
    "signal_score",
    "problem_statement",
    "frequency",
    "pain_intensity",
    "monetization",
    "solvability",
    "competitive_gap",
    "mention_count",
    "sources",
    "suggested_next_step",
    "evidence_url",
]


def problems_to_csv(problems: Sequence[Problem]) -> str:
    buf = io.StringIO()
    writer = csv.writer(buf, lineterminator="\n")
    writer.writerow(CSV_COLUMNS)
    for position, problem in enumerate(problems, start=1):
        scores = problem.scores
        writer.writerow(
            [
                position,
                problem.rank,
                problem.signal_score,
                problem.problem_statement,
                scores.frequency,
                scores.pain_intensity,
                scores.monetization,
                scores.solvability,
                scores.competitive_gap,
                problem.metadata.mention_count,
                ";".join(problem.metadata.sources),
                problem.suggested_next_step,
                problem.evidence[0].url if problem.evidence else "",
            ]
        )
    return buf.getvalue()

"""
Result report generation.

Renders an offering's per-student results and class statistics as
JSON, CSV, or a standalone printable HTML page.
"""

import csv
import io
import json
from datetime import date
from decimal import Decimal
from enum import Enum
from pathlib import Path
from typing import Any, Sequence

from jinja2 import BaseLoader, Environment, select_autoescape

from gradely.models import ClassStatistics, CourseOffering, StudentResult, as_decimal


class ReportFormat(str, Enum):
    """Output format for result reports."""

    JSON = "json"
    CSV = "csv"
    HTML = "html"


def _fmt(value: Any) -> str:
    """Render a number without exponent or trailing zeros."""
    return format(as_decimal(value).normalize(), "f")


HTML_TEMPLATE = """<!DOCTYPE html>
<html lang="en">
<head>
  <meta charset="UTF-8">
  <title>{{ title }} - Results</title>
  <style>
    body { font-family: Arial, sans-serif; margin: 20px; color: #333; }
    table { width: 100%; border-collapse: collapse; margin-bottom: 20px; }
    th, td { border: 1px solid #ddd; padding: 6px 8px; text-align: center; }
    th { background: #3b82f6; color: #fff; }
    .pass { color: #059669; font-weight: bold; }
    .fail { color: #dc2626; font-weight: bold; }
  </style>
</head>
<body>
  <h1>{{ title }}</h1>
  {% if term %}<p>{{ term }}</p>{% endif %}
  <p>Generated on {{ generated_on }}</p>
  <h2>Class Statistics</h2>
  <table>
    <tr><th>Students</th><th>Average</th><th>Highest</th><th>Lowest</th><th>Pass Rate</th><th>Passed</th><th>Failed</th></tr>
    <tr>
      <td>{{ statistics.total_students }}</td>
      <td>{{ statistics.average }}</td>
      <td>{{ statistics.highest | fmt }}</td>
      <td>{{ statistics.lowest | fmt }}</td>
      <td>{{ statistics.pass_rate }}%</td>
      <td>{{ statistics.passed_count }}</td>
      <td>{{ statistics.failed_count }}</td>
    </tr>
  </table>
  <h2>Results</h2>
  <table>
    <tr>
      <th>Student ID</th>
      {% for a in assessments %}<th>{{ a.name }} (/{{ a.max_score | fmt }})</th>{% endfor %}
      <th>Total (/100)</th><th>Grade</th><th>Status</th>
    </tr>
    {% for r in results %}
    <tr>
      <td>{{ r.student_id }}</td>
      {% for a in assessments %}<td>{{ r.scores.get(a.id, 0) | fmt }}</td>{% endfor %}
      <td>{{ r.total | fmt }}</td>
      <td>{{ r.grade }}</td>
      {% if r.passed %}<td class="pass">PASS</td>{% else %}<td class="fail">FAIL</td>{% endif %}
    </tr>
    {% endfor %}
  </table>
  <h2>Grade Distribution</h2>
  <table>
    <tr><th>Grade</th><th>Students</th></tr>
    {% for label, count in statistics.distribution.items() %}
    <tr><td>{{ label }}</td><td>{{ count }}</td></tr>
    {% endfor %}
  </table>
</body>
</html>
"""


env = Environment(loader=BaseLoader(), autoescape=select_autoescape(["html", "xml"]))
env.filters["fmt"] = _fmt


class ReportGenerator:
    """Generates result reports in the supported formats."""

    def generate(
        self,
        offering: CourseOffering,
        results: Sequence[StudentResult],
        statistics: ClassStatistics,
        format: ReportFormat = ReportFormat.JSON,
    ) -> str:
        """
        Render a report.

        Args:
            offering: The offering reported on.
            results: Per-student results.
            statistics: Aggregate statistics for the same results.
            format: Output format.

        Returns:
            The rendered report.
        """
        if format == ReportFormat.CSV:
            return self._to_csv(offering, results)
        if format == ReportFormat.HTML:
            return self._to_html(offering, results, statistics)
        return self._to_json(offering, results, statistics)

    def save(
        self,
        offering: CourseOffering,
        results: Sequence[StudentResult],
        statistics: ClassStatistics,
        output_path: Path,
        format: ReportFormat = ReportFormat.JSON,
    ) -> Path:
        """
        Render a report and write it to disk.

        A missing file extension is filled in from the format.

        Returns:
            Path of the written file.
        """
        if not output_path.suffix:
            output_path = output_path.with_suffix(f".{format.value}")
        output_path.parent.mkdir(parents=True, exist_ok=True)
        output_path.write_text(
            self.generate(offering, results, statistics, format), encoding="utf-8"
        )
        return output_path

    def _to_json(
        self,
        offering: CourseOffering,
        results: Sequence[StudentResult],
        statistics: ClassStatistics,
    ) -> str:
        payload = {
            "offering": offering.model_dump(mode="json", by_alias=True),
            "results": [r.model_dump(mode="json", by_alias=True) for r in results],
            "statistics": statistics.model_dump(mode="json", by_alias=True),
        }
        return json.dumps(payload, indent=2)

    def _to_csv(self, offering: CourseOffering, results: Sequence[StudentResult]) -> str:
        buffer = io.StringIO()
        writer = csv.writer(buffer, lineterminator="\n")

        writer.writerow(
            ["Student ID"]
            + [f"{a.name} (/{_fmt(a.max_score)})" for a in offering.assessments]
            + ["Total (/100)", "Grade", "Status"]
        )
        for result in results:
            writer.writerow(
                [result.student_id]
                + [_fmt(result.scores.get(a.id, Decimal("0"))) for a in offering.assessments]
                + [_fmt(result.total), result.grade, "PASS" if result.passed else "FAIL"]
            )

        return buffer.getvalue()

    def _to_html(
        self,
        offering: CourseOffering,
        results: Sequence[StudentResult],
        statistics: ClassStatistics,
    ) -> str:
        title = f"{offering.course_code} {offering.title}".strip() or offering.id
        term = " ".join(p for p in (offering.term, str(offering.year or "")) if p)

        return env.from_string(HTML_TEMPLATE).render(
            title=title,
            term=term,
            generated_on=date.today().isoformat(),
            assessments=offering.assessments,
            results=results,
            statistics=statistics,
        )

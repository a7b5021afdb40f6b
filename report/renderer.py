"""
Report renderer: serialize metric records as JSON, CSV, Markdown or HTML.
Markdown and HTML go through the Jinja2 templates in report/templates.
"""

from typing import Optional, List, Dict, Any
from normalize.models import MetricRecord
import os
import json
import io
import csv
from jinja2 import Environment, FileSystemLoader, select_autoescape

TEMPLATE_DIR = os.path.join(os.path.dirname(__file__), 'templates')

# column order for tabular formats; keys of MetricRecord.to_dict()
COLUMNS = [
    'issueNumber',
    'product',
    'title',
    'estimatedManWeeks',
    'progression',
    'startDate',
    'endDate',
    'closedDate',
    'totalDays',
    'daysOverdue',
    'percentageOverdue',
    'successIndicator',
    'expectedLinearProgression',
]


def _environment() -> Environment:
    env = Environment(loader=FileSystemLoader(TEMPLATE_DIR), autoescape=select_autoescape(['html', 'xml', 'html.j2']))
    env.filters['blank'] = _blank
    env.filters['day'] = _day
    return env


def _blank(value: Any) -> Any:
    """Show None as an empty cell."""
    return '' if value is None else value


def _day(value: Optional[str]) -> str:
    """Trim an ISO timestamp to its date part."""
    return value[:10] if value else ''


def _rows(records: List[MetricRecord]) -> List[Dict[str, Any]]:
    return [r.to_dict() for r in records]


def render_json(records: List[MetricRecord]) -> str:
    return json.dumps(_rows(records), indent=2, ensure_ascii=False)


def render_csv(records: List[MetricRecord]) -> str:
    output = io.StringIO()
    writer = csv.DictWriter(output, fieldnames=COLUMNS)
    writer.writeheader()
    for row in _rows(records):
        writer.writerow({k: _blank(row.get(k)) for k in COLUMNS})
    return output.getvalue()


def render_markdown(records: List[MetricRecord], generated_at: Optional[str] = None, scope: Optional[str] = None) -> str:
    tmpl = _environment().get_template('report.md.j2')
    return tmpl.render(rows=_rows(records), generated_at=generated_at, scope=scope)


def render_html(records: List[MetricRecord], generated_at: Optional[str] = None, scope: Optional[str] = None, errors: Optional[List[Any]] = None) -> str:
    tmpl = _environment().get_template('report.html.j2')
    return tmpl.render(rows=_rows(records), generated_at=generated_at, scope=scope, errors=[str(e) for e in errors or []])


def render(records: List[MetricRecord], fmt: str = 'json', generated_at: Optional[str] = None, scope: Optional[str] = None, errors: Optional[List[Any]] = None) -> str:
    """Main render function. Unknown formats raise ValueError."""
    fmt_l = (fmt or 'json').lower()
    if fmt_l in ('json', 'js'):
        return render_json(records)
    if fmt_l == 'csv':
        return render_csv(records)
    if fmt_l in ('md', 'markdown'):
        return render_markdown(records, generated_at=generated_at, scope=scope)
    if fmt_l in ('html', 'htm'):
        return render_html(records, generated_at=generated_at, scope=scope, errors=errors)
    raise ValueError(f"Unsupported output format: {fmt}")

"""Report rendering and export (JSON, YAML, TOML, CSV, HTML).

Renderers are pure functions of the report so identical graphs always
produce byte-identical output.
"""

from __future__ import annotations

import csv
import io
import json
import logging
import sys
from typing import Callable, Dict, Optional

import jinja2
import tomli_w
import yaml

from analysis.report import FrontierReport
from constants import ExitCodes, OutputFormats

logger = logging.getLogger(__name__)

CSV_HEADERS = [
    "member",
    "member_version",
    "dependency",
    "dependency_version",
    "kind",
    "features",
    "activation",
    "direct",
    "internal",
]

_HTML_TEMPLATE = """<!DOCTYPE html>
<html>
<head>
<meta charset="utf-8">
<title>{{ title }}</title>
</head>
<body>
<h1 id="heading" class="title">{{ title }}</h1>
<p>Each workspace member below reaches {{ target }} through the listed direct
dependencies. Removing every listed edge of a member removes its dependency on
the target.</p>
<p id="summary">{{ summary.members_affected }} of {{ summary.members_scanned }} workspace
members affected, {{ summary.total_entries }} frontier edges.</p>
<ol id="main">
{%- for group in groups %}
<li class="item">package <code>{{ group.member.name }}</code> introduces transitive dependencies on <code>{{ target }}</code> via:
<ol class="nested">
{%- for entry in group.entries %}
<li class="nested-item">dependency: <code>{{ entry.name }} {{ entry.version }}</code> ({{ entry.kind }}
{%- if entry.features %}, features: {{ entry.features | join(", ") }}{% endif %}
{%- if entry.activation != "active" %}, {{ entry.activation }}{% endif %})</li>
{%- endfor %}
</ol>
</li>
{%- endfor %}
</ol>
</body>
</html>
"""


def render_json(report: FrontierReport) -> str:
    return json.dumps(report.to_dict(), ensure_ascii=False, indent=2) + "\n"


def render_yaml(report: FrontierReport) -> str:
    return yaml.safe_dump(report.to_dict(), sort_keys=False, default_flow_style=False)


def render_toml(report: FrontierReport) -> str:
    """TOML document; the frontier becomes an array of ``[[frontier]]`` tables."""
    return tomli_w.dumps(report.to_dict())


def render_csv(report: FrontierReport) -> str:
    """One row per frontier entry, with a header row."""
    buf = io.StringIO()
    writer = csv.writer(buf, lineterminator="\n")
    writer.writerow(CSV_HEADERS)
    for entry in report.entries():
        writer.writerow([
            entry.member.name,
            entry.member.version,
            entry.dependency.name,
            entry.dependency.version,
            entry.kind.value,
            ";".join(entry.features),
            entry.activation.value,
            entry.direct,
            entry.internal,
        ])
    return buf.getvalue()


def _create_jinja_env() -> jinja2.Environment:
    return jinja2.Environment(
        autoescape=True,
        undefined=jinja2.StrictUndefined,
        keep_trailing_newline=True,
    )


def render_html(report: FrontierReport) -> str:
    data = report.to_dict()
    target = ", ".join(data["targets"])
    template = _create_jinja_env().from_string(_HTML_TEMPLATE)
    return template.render(
        title=f"workspace frontier for transitive dependencies on {target}",
        target=target,
        summary=data["summary"],
        groups=data["frontier"],
    )


RENDERERS: Dict[str, Callable[[FrontierReport], str]] = {
    OutputFormats.JSON.value: render_json,
    OutputFormats.YAML.value: render_yaml,
    OutputFormats.TOML.value: render_toml,
    OutputFormats.CSV.value: render_csv,
    OutputFormats.HTML.value: render_html,
}


def render(report: FrontierReport, fmt: str) -> str:
    try:
        renderer = RENDERERS[fmt]
    except KeyError as e:
        raise ValueError(f"Unsupported output format: {fmt}") from e
    return renderer(report)


def write_output(text: str, path: Optional[str]) -> None:
    """Write rendered output to ``path``, or stdout when no path is given."""
    if not path:
        sys.stdout.write(text)
        sys.stdout.flush()
        return
    try:
        with open(path, "w", encoding="utf-8", newline="") as file:
            file.write(text)
        logger.info("Report has been successfully exported at: %s", path)
    except OSError as e:
        logger.error("Report couldn't be written to disk: %s", e)
        sys.exit(ExitCodes.FILE_ERROR.value)

"""
Report formatting utilities.

Renders the report payload (``TransparencyReport.to_payload()``) as Markdown,
HTML or JSON. The payload always carries every field used here, so rendering
needs no null handling.
"""

import html
import json
import logging
from datetime import datetime
from pathlib import Path
from typing import Any, Optional

import markdown2

from truthtrack.config.settings import get_settings
from truthtrack.models.schemas import TransparencyReport

logger = logging.getLogger(__name__)

SUB_SCORE_LABELS = (
    ("completeness", "Completeness"),
    ("quality", "Quality"),
    ("transparency_level", "Transparency Level"),
    ("category_specific", "Category Specific"),
)

HTML_STYLE = """
body { font-family: Arial, sans-serif; max-width: 900px; margin: 0 auto; padding: 40px; line-height: 1.6; color: #333; }
h1 { border-bottom: 2px solid #2563eb; padding-bottom: 10px; }
h1, h2, h3 { color: #1e293b; }
table { border-collapse: collapse; width: 100%; margin: 20px 0; }
th, td { border: 1px solid #e2e8f0; padding: 10px; text-align: left; }
th { background-color: #f8fafc; }
footer { margin-top: 40px; color: #64748b; border-top: 1px solid #e2e8f0; padding-top: 20px; }
"""


def _escape_cell(value: str) -> str:
    return value.replace("|", "-").replace("\n", " ")


def format_breakdown_table(payload: dict[str, Any]) -> str:
    """
    | Area | Score |
    |------|-------|
    | Completeness | 25/25 |
    """
    breakdown = payload["score_breakdown"]
    rows = [f"| {label} | {breakdown[key]}/25 |" for key, label in SUB_SCORE_LABELS]
    return "| Area | Score |\n|------|-------|\n" + "\n".join(rows)


def format_product_table(payload: dict[str, Any]) -> str:
    product = payload["product"]
    rows = [f"| Product Name | {_escape_cell(product['name'])} |"]
    if product["brand"]:
        rows.append(f"| Brand | {_escape_cell(product['brand'])} |")
    rows.append(f"| Category | {_escape_cell(product['category'])} |")
    if product["description"]:
        rows.append(f"| Description | {_escape_cell(product['description'])} |")
    return "| Field | Value |\n|-------|-------|\n" + "\n".join(rows)


def format_bullets(items: list[str], empty: str) -> str:
    if not items:
        return f"*{empty}*"
    return "\n".join(f"- {item}" for item in items)


def render_markdown(payload: dict[str, Any]) -> str:
    """
    Render the report payload as Markdown.

    Structure:
    # Product Transparency Report: {name}
    ## Overall Score
    ## Product Information
    ## Key Insights
    ## Recommendations for Improvement
    """
    generated = payload["generated_at"]
    try:
        generated_display = datetime.fromisoformat(generated.replace("Z", "+00:00")).strftime("%Y-%m-%d")
    except ValueError:
        generated_display = generated

    return f"""# Product Transparency Report: {payload['product']['name']}

Generated on {generated_display}

## Overall Score
**{payload['total_score']}/100** ({payload['score_band'].replace('_', ' ').title()})

{format_breakdown_table(payload)}

Questions answered: {payload['questions_answered']}

## Product Information
{format_product_table(payload)}

## Key Insights
{format_bullets(payload['insights'], 'No insights derived from the answers.')}

## Recommendations for Improvement
{format_bullets(payload['recommendations'], 'No recommendations.')}

---
Generated by TruthTrack - Product Transparency Platform

Report ID: {payload['id']}
"""


def render_html(payload: dict[str, Any]) -> str:
    body = markdown2.markdown(
        render_markdown(payload),
        extras=["tables", "break-on-newline"],
        safe_mode="escape",
    )
    return f"""<!DOCTYPE html>
<html lang="en">
<head>
<meta charset="UTF-8">
<title>Product Transparency Report - {html.escape(payload['product']['name'])}</title>
<style>{HTML_STYLE}</style>
</head>
<body>
{body}
</body>
</html>
"""


def render_report(report: TransparencyReport, format: str = "markdown") -> str:
    payload = report.to_payload()
    if format == "markdown":
        return render_markdown(payload)
    if format == "html":
        return render_html(payload)
    if format == "json":
        return json.dumps(payload, indent=2)
    raise ValueError(f"Unsupported format: {format}")


class ReportFormatter:
    """Render reports and save them under an output directory."""

    EXTENSIONS = {"markdown": ".md", "html": ".html", "json": ".json"}

    def __init__(self, output_dir: Optional[Path] = None):
        if output_dir is None:
            output_dir = get_settings().output_dir
        self.output_dir = Path(output_dir)

    def save_report(self, report: TransparencyReport, format_type: str = "markdown") -> Path:
        if format_type not in self.EXTENSIONS:
            raise ValueError(f"Unsupported format: {format_type}")

        self.output_dir.mkdir(parents=True, exist_ok=True)
        slug = "".join(c if c.isalnum() else "_" for c in report.product.name.lower()).strip("_")
        timestamp = report.generated_at.strftime("%Y%m%d_%H%M%S")
        file_path = self.output_dir / f"{slug or 'product'}_{timestamp}{self.EXTENSIONS[format_type]}"

        file_path.write_text(render_report(report, format_type), encoding="utf-8")
        logger.info(f"Saved {format_type} report to {file_path}")
        return file_path

import json
from datetime import datetime, timezone

import pytest

from truthtrack.models.schemas import Product
from truthtrack.scoring.report import score_answers
from truthtrack.utils.formatters import (
    ReportFormatter,
    format_breakdown_table,
    format_bullets,
    format_product_table,
    render_html,
    render_markdown,
    render_report,
)

FIXED_TIME = datetime(2024, 6, 1, 9, 30, tzinfo=timezone.utc)


@pytest.fixture
def report(sample_product, sample_answers):
    return score_answers(sample_product, sample_answers, generated_at=FIXED_TIME)


@pytest.fixture
def payload(report):
    return report.to_payload()


def test_format_breakdown_table(payload):
    table = format_breakdown_table(payload)
    assert "| Completeness | 25/25 |" in table
    assert "| Quality | 11/25 |" in table
    assert "| Transparency Level | 4/25 |" in table
    assert "| Category Specific | 8/25 |" in table


def test_format_product_table_skips_blank_fields():
    payload = score_answers(Product(name="Cable | USB", category="Electronics"), []).to_payload()
    table = format_product_table(payload)
    assert "Brand" not in table
    assert "Description" not in table
    assert "Cable - USB" in table


def test_format_bullets():
    assert format_bullets(["a", "b"], "none") == "- a\n- b"
    assert format_bullets([], "none") == "*none*"


def test_render_markdown_sections(payload):
    markdown = render_markdown(payload)

    assert markdown.startswith("# Product Transparency Report: Organic Granola Bar")
    assert "Generated on 2024-06-01" in markdown
    assert "**48/100** (Needs Improvement)" in markdown
    assert "## Key Insights" in markdown
    assert "- Product includes third-party certifications" in markdown
    assert "## Recommendations for Improvement" in markdown
    assert f"Report ID: {payload['id']}" in markdown


def test_render_markdown_empty_lists():
    payload = score_answers(Product(name="Cable", category="Electronics"), []).to_payload()
    assert "*No insights derived from the answers.*" in render_markdown(payload)


def test_render_html(payload):
    html = render_html(payload)
    assert html.startswith("<!DOCTYPE html>")
    assert "<title>Product Transparency Report - Organic Granola Bar</title>" in html
    assert "<table>" in html
    assert "<h2>Key Insights</h2>" in html


def test_render_html_escapes_product_text():
    product = Product(
        name="Bar <b>Bold</b>",
        category="Electronics",
        description="<script>alert(1)</script>",
    )
    html = render_html(score_answers(product, []).to_payload())

    assert "<script>" not in html
    assert "<b>Bold</b>" not in html
    assert "<title>Product Transparency Report - Bar &lt;b&gt;Bold&lt;/b&gt;</title>" in html
    assert "alert(1)" in html


def test_render_report_json(report):
    data = json.loads(render_report(report, "json"))
    assert data == report.to_payload()


def test_render_report_unknown_format(report):
    with pytest.raises(ValueError):
        render_report(report, "pdf")


@pytest.mark.parametrize("format_type, suffix", [
    ("markdown", ".md"),
    ("html", ".html"),
    ("json", ".json"),
])
def test_save_report(tmp_path, report, format_type, suffix):
    formatter = ReportFormatter(output_dir=tmp_path / "out")
    path = formatter.save_report(report, format_type)

    assert path.parent == tmp_path / "out"
    assert path.name == f"organic_granola_bar_20240601_093000{suffix}"
    assert path.read_text(encoding="utf-8") == render_report(report, format_type)


def test_save_report_default_dir_from_settings(isolated_settings, report):
    formatter = ReportFormatter()
    assert formatter.output_dir == isolated_settings.output_dir


def test_save_report_unknown_format(tmp_path, report):
    with pytest.raises(ValueError):
        ReportFormatter(tmp_path).save_report(report, "pdf")

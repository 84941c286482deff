from __future__ import annotations
import json
from datetime import datetime, timezone
from html import escape

from resume_architect.core import AnalysisResult

EXPORT_FILENAME = "resume-analysis.json"


def export_json(result: AnalysisResult) -> str:
    return json.dumps(result.model_dump(mode="json", by_alias=True), indent=2)


def _score_class(score: int) -> str:
    return "emerald" if score > 70 else "amber"


def render_html_report(result: AnalysisResult, file_name: str = "") -> str:
    now = datetime.now(timezone.utc).strftime("%Y-%m-%d %H:%M UTC")

    def li(items):
        return "".join([f"<li>{escape(x)}</li>" for x in items]) if items else "<li>—</li>"

    section_rows = "".join(
        f"""
        <tr>
          <td>{escape(s.name)}</td>
          <td class="{_score_class(s.score)}">{s.score}</td>
          <td class="detail">{escape(s.feedback)}</td>
        </tr>"""
        for s in result.sections
    )

    cards = ""
    for item in result.action_items:
        cards += f"""
        <div class="card">
          <div class="tag">{escape(item.priority.upper())} · {escape(item.category)}</div>
          <div class="detail">{escape(item.suggestion)}</div>
        </div>
        """

    html = f"""
<!doctype html>
<html>
<head>
  <meta charset="utf-8"/>
  <meta name="viewport" content="width=device-width, initial-scale=1"/>
  <title>Resume Analysis</title>
  <style>
    body {{
      font-family: ui-sans-serif, system-ui, -apple-system, Segoe UI, Roboto, Arial;
      background: #F8FAFC;
      color: #0F172A;
      margin: 0; padding: 24px;
    }}
    .wrap {{ max-width: 980px; margin: 0 auto; }}
    .hero, .panel, .card {{
      background: #FFFFFF;
      border: 1px solid #E2E8F0;
      border-radius: 16px;
      padding: 14px;
    }}
    .row {{ display: grid; grid-template-columns: 1fr 1fr; gap: 14px; margin-top: 14px; }}
    .kpi {{ font-size: 34px; font-weight: 800; letter-spacing: -0.02em; }}
    .muted {{ color: #64748B; font-size: 13px; }}
    .emerald {{ color: #16A34A; font-weight: 700; }}
    .amber {{ color: #F97316; font-weight: 700; }}
    .card {{ margin-bottom: 10px; }}
    .tag {{
      display: inline-block;
      font-size: 11px;
      padding: 4px 8px;
      border-radius: 999px;
      color: #2563EB;
      background: #EFF6FF;
      margin-bottom: 6px;
    }}
    .detail {{ color: #334155; font-size: 13px; line-height: 1.4; }}
    table {{ width: 100%; border-collapse: collapse; margin-top: 8px; }}
    td {{ padding: 8px; border-top: 1px solid #E2E8F0; vertical-align: top; }}
    ul {{ margin: 8px 0 0 18px; }}
    @media (max-width: 820px) {{
      .row {{ grid-template-columns: 1fr; }}
    }}
  </style>
</head>
<body>
  <div class="wrap">
    <div class="hero">
      <div class="muted">Generated: {now}</div>
      <h1 style="margin:8px 0 0; font-size: 22px;">Resume Analysis</h1>
      <div class="muted">Filename: {escape(file_name) or "—"}</div>
    </div>

    <div class="row">
      <div class="panel">
        <div class="muted">Overall Score</div>
        <div class="kpi"><span class="{_score_class(result.overall_score)}">{result.overall_score}</span><span class="muted"> / 100</span></div>
        <div class="detail">{escape(result.summary)}</div>
      </div>
      <div class="panel">
        <div class="muted">Section Scores</div>
        <table>{section_rows or "<tr><td>—</td></tr>"}</table>
      </div>
    </div>

    <div class="row">
      <div class="panel">
        <div class="muted">Keywords Present</div>
        <ul>{li(result.keywords.present)}</ul>
      </div>
      <div class="panel">
        <div class="muted">Keywords Missing</div>
        <ul>{li(result.keywords.missing)}</ul>
      </div>
    </div>

    <div class="panel" style="margin-top:14px;">
      <div class="muted">Action Items</div>
      <div style="margin-top:10px;">{cards or "<div class='muted'>—</div>"}</div>
    </div>

    <div class="panel" style="margin-top:14px;">
      <div class="muted">Job Market Insights</div>
      <div class="detail">{escape(result.job_market_insights)}</div>
    </div>
  </div>
</body>
</html>
"""
    return html

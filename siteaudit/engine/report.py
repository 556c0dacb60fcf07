# siteaudit/engine/report.py
from __future__ import annotations

import re
from dataclasses import dataclass
from datetime import date, datetime, timezone, tzinfo
from typing import Any, Dict, List, Optional

from jinja2 import BaseLoader, Environment, TemplateError

from .catalog import QuestionCatalog
from .exceptions import ReportCompilationError
from .images import ImageInliningReport, Resolver, inline_images
from .scoring import category_scores, compliance_badge, latest_answers
from .types import Answer, Evaluation, Project

DATE_FORMAT = "%d/%m/%Y"
DATETIME_FORMAT = "%d/%m/%Y %H:%M:%S %Z"

BADGE_LABELS = {
    "compliant": "Compliant",
    "attention": "Attention",
    "non-compliant": "Non-Compliant",
}


@dataclass(frozen=True)
class CompiledReport:
    html: str
    filename: str
    generated_at: datetime
    images: ImageInliningReport


def format_score(answer: Answer | None) -> str:
    if answer is None:
        return "0"
    if answer.is_not_applicable:
        return "N/A"
    if answer.score > 0:
        return f"{answer.score:.2f}"
    return "0"


def report_filename(project: Project, generated_at: datetime) -> str:
    safe = re.sub(r"[^a-zA-Z0-9]", "_", project.name)
    return f"Inspection_Report_{safe}_{generated_at.date().isoformat()}.html"


def _format_date(d: date | datetime, fmt: str) -> str:
    return d.strftime(fmt)


def _localize(moment: datetime, tz: tzinfo) -> datetime:
    # naive timestamps are taken as UTC
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=timezone.utc)
    return moment.astimezone(tz)


def _main_table(catalog: QuestionCatalog, evaluation: Evaluation) -> List[Dict[str, Any]]:
    by_id = latest_answers(evaluation.answers)
    sections = []
    for cat in category_scores(catalog, evaluation.answers):
        rows = []
        for q in catalog.in_category(cat.category):
            a = by_id.get(q.id)
            rows.append({
                "text": q.question.upper(),
                "score": format_score(a),
                "marker": bool(a and (a.has_notes or a.has_images)),
                "notes": a.notes if a and a.has_notes else None,
            })
        sections.append({
            "title": f"{cat.index:02d}.{cat.name.upper()}",
            "score": f"{cat.percentage:.2f}",
            "rows": rows,
        })
    return sections


def _photo_answers(catalog: QuestionCatalog, evaluation: Evaluation) -> List[tuple]:
    """(answer, question, category index, category name) for answers carrying images."""
    out = []
    for a in latest_answers(evaluation.answers).values():
        if not a.has_images:
            continue
        q = catalog.get(a.question_id)
        if q is None:
            continue
        idx = catalog.category_index(q.category)
        if idx is None:
            continue
        out.append((a, q, idx, catalog.category_name(q.category)))
    return out


def _photo_entries(photo_answers: List[tuple], images: ImageInliningReport, timestamp: str) -> List[Dict[str, Any]]:
    entries = []
    for a, q, idx, cat_name in photo_answers:
        badge = compliance_badge(a.score)
        for ref in a.images:
            entries.append({
                "title": f"{idx:02d}.{cat_name.upper()} > {q.question.upper()}",
                "src": images.src_for(ref),
                "badge_class": badge,
                "badge_label": BADGE_LABELS[badge],
                "timestamp": timestamp,
                "notes": a.notes if a.has_notes else None,
            })
    return entries


class ReportCompiler:
    """
    Renders a project and its evaluation into one self-contained HTML document.

    The output depends only on the inputs and `generated_at`; everything that
    varies between runs goes through that one timestamp.
    Timestamps print in `tz`, with the zone in the default format.
    """

    def __init__(
        self,
        catalog: QuestionCatalog,
        resolver: Resolver,
        date_format: str = DATE_FORMAT,
        datetime_format: str = DATETIME_FORMAT,
        tz: tzinfo = timezone.utc,
    ):
        self.catalog = catalog
        self.resolver = resolver
        self.date_format = date_format
        self.datetime_format = datetime_format
        self.tz = tz
        self.env = Environment(loader=BaseLoader(), autoescape=True)
        self.template = self.env.from_string(REPORT_TEMPLATE)

    def compile(self, project: Project, evaluation: Evaluation, generated_at: Optional[datetime] = None) -> CompiledReport:
        if evaluation.project_id != project.id:
            raise ReportCompilationError(
                f"Evaluation belongs to project {evaluation.project_id}, not {project.id}"
            )
        generated_at = _localize(generated_at or datetime.now(timezone.utc), self.tz)

        try:
            sections = _main_table(self.catalog, evaluation)
            photo_answers = _photo_answers(self.catalog, evaluation)

            refs = [r for r in (project.logo, project.client_logo) if r]
            refs += [ref for a, *_ in photo_answers for ref in a.images]
            images = inline_images(refs, self.resolver)

            timestamp = _format_date(generated_at, self.datetime_format)
            html = self.template.render(
                project=project,
                logo_src=images.src_for(project.logo) if project.logo else None,
                client_logo_src=images.src_for(project.client_logo) if project.client_logo else None,
                generated_at=timestamp,
                generated_date=_format_date(generated_at, self.date_format),
                evaluation_date=_format_date(project.evaluation_date, self.date_format),
                percentage=f"{evaluation.percentage:.3f}",
                sections=sections,
                photos=_photo_entries(photo_answers, images, timestamp),
            )
        except TemplateError as e:
            raise ReportCompilationError(f"Report template failed: {e}") from e
        except (AttributeError, TypeError, ValueError) as e:
            raise ReportCompilationError(f"Malformed report input: {e}") from e

        return CompiledReport(
            html=html,
            filename=report_filename(project, generated_at),
            generated_at=generated_at,
            images=images,
        )


REPORT_TEMPLATE = r"""<!DOCTYPE html>
<html lang="en">
<head>
  <meta charset="UTF-8">
  <meta name="viewport" content="width=device-width, initial-scale=1.0">
  <title>Inspection Report - {{ project.name }}</title>
  <style>
    body { font-family: 'Helvetica Neue', 'Helvetica', 'Arial', sans-serif; margin: 0; padding: 0; background-color: #f4f4f4; color: #333; line-height: 1.6; -webkit-print-color-adjust: exact !important; print-color-adjust: exact !important; }
    .container { max-width: 800px; margin: 20px auto; background: #fff; padding: 30px; border-radius: 8px; box-shadow: 0 0 15px rgba(0,0,0,0.1); }
    .header { display: flex; align-items: center; justify-content: space-between; margin-bottom: 30px; border-bottom: 2px solid #eee; padding-bottom: 20px; }
    .logo-section { display: flex; flex-direction: column; gap: 10px; margin-right: 20px; }
    .logo-container { width: 120px; height: 80px; background: #f0f0f0; border: 2px solid #ccc; display: flex; align-items: center; justify-content: center; font-size: 10px; color: #666; text-align: center; overflow: hidden; }
    .company-logo, .client-logo { width: 100%; height: 100%; object-fit: contain; border-radius: 4px; }
    .logo-label { font-size: 8px; color: #666; text-align: center; font-weight: bold; }
    .title-section { flex: 1; }
    .main-title { font-size: 24px; font-weight: bold; text-align: center; margin-bottom: 10px; text-transform: uppercase; }
    .subtitle { text-align: center; font-size: 14px; margin-bottom: 15px; }
    .creator-info { text-align: right; font-size: 11px; margin-bottom: 15px; color: #666; }
    .project-info { background: #f8f9fa; padding: 15px; border: 1px solid #ddd; margin-bottom: 20px; }
    .info-grid { display: grid; grid-template-columns: repeat(2, 1fr); gap: 10px; margin-bottom: 10px; }
    .info-item { font-size: 11px; }
    .info-label { font-weight: bold; color: #333; }
    .main-table { width: 100%; border-collapse: collapse; border: 2px solid #333; margin-bottom: 30px; }
    .main-table td { border: 1px solid #333; padding: 8px; vertical-align: top; font-size: 11px; }
    .header-row td { background: #333; color: white; font-weight: bold; text-align: center; font-size: 12px; }
    .desc-header { width: 70%; }
    .eval-header { width: 30%; }
    .score-row { background: #f0f0f0; }
    .score-label { font-weight: bold; text-align: center; }
    .score-value { font-weight: bold; text-align: center; font-size: 14px; color: #d32f2f; }
    .category-row td { background: #e3f2fd; font-weight: bold; font-size: 12px; }
    .category-title { color: #1976d2; }
    .category-score { text-align: center; font-size: 13px; }
    .question-text { font-size: 10px; line-height: 1.3; }
    .question-score { text-align: center; font-weight: bold; }
    .has-content { color: #2196f3; margin-left: 5px; }
    .notes-row td { background: #fff3e0; font-style: italic; font-size: 10px; color: #e65100; }
    .page-break { page-break-before: always; break-before: page; }
    .photo-section { margin-top: 30px; }
    .section-title { background: #333; color: white; padding: 15px; font-size: 16px; font-weight: bold; text-align: center; margin-bottom: 20px; }
    .photo-item { margin-bottom: 40px; page-break-inside: avoid; break-inside: avoid; }
    .photo-title { font-size: 12px; font-weight: bold; margin-bottom: 15px; color: #333; padding: 8px; background: #f5f5f5; border-left: 4px solid #2196f3; }
    .photo-container { text-align: center; margin: 15px 0; }
    .inspection-photo { max-width: 400px; max-height: 300px; border: 2px solid #ddd; }
    .photo-status { text-align: center; margin: 15px 0; }
    .status-badge { display: inline-block; padding: 8px 20px; color: white; font-weight: bold; font-size: 14px; border-radius: 4px; }
    .status-badge.compliant { background: #4caf50; }
    .status-badge.attention { background: #ff9800; }
    .status-badge.non-compliant { background: #f44336; }
    .photo-timestamp { text-align: center; font-size: 10px; color: #666; margin-bottom: 10px; }
    .photo-notes { background: #f9f9f9; padding: 10px; border-left: 4px solid #2196f3; font-size: 11px; line-height: 1.4; }
    @media print {
      body { background: #fff; }
      .container { max-width: none; margin: 0; padding: 15mm; box-shadow: none; }
      .main-table { font-size: 10px; }
    }
    @media (max-width: 768px) {
      .container { padding: 10px; }
      .header { flex-direction: column; text-align: center; }
      .logo-section { margin-right: 0; margin-bottom: 15px; }
      .info-grid { grid-template-columns: 1fr; }
    }
  </style>
</head>
<body>
  <div class="container">
    <div class="header">
      <div class="logo-section">
        <div class="logo-container">
          {% if logo_src %}<img src="{{ logo_src }}" alt="Company logo" class="company-logo" />{% else %}COMPANY<br>LOGO{% endif %}
        </div>
        <div class="logo-label">COMPANY</div>
        <div class="logo-container">
          {% if client_logo_src %}<img src="{{ client_logo_src }}" alt="Client logo" class="client-logo" />{% else %}CLIENT<br>LOGO{% endif %}
        </div>
        <div class="logo-label">CLIENT</div>
      </div>
      <div class="title-section">
        <h1 class="main-title">Inspection Report</h1>
        <div class="subtitle">Construction Site Safety Evaluation</div>
        <div class="subtitle">{{ project.name }}</div>
      </div>
    </div>

    <div class="creator-info">
      Created by: {{ project.engineer }}<br>
      Created on: {{ generated_at }}
    </div>

    <div class="project-info">
      <div class="info-grid">
        <div class="info-item"><span class="info-label">Project:</span> {{ project.name }}</div>
        <div class="info-item"><span class="info-label">Location:</span> {{ project.location }}</div>
        <div class="info-item"><span class="info-label">Engineer:</span> {{ project.engineer }}</div>
        <div class="info-item"><span class="info-label">Foreman:</span> {{ project.foreman }}</div>
        <div class="info-item"><span class="info-label">Evaluation Date:</span> {{ evaluation_date }}</div>
        <div class="info-item"><span class="info-label">Report Generated:</span> {{ generated_date }}</div>
      </div>
      {% if project.description %}
      <div class="info-item" style="margin-top: 10px;"><span class="info-label">Description:</span> {{ project.description }}</div>
      {% endif %}
    </div>

    <table class="main-table">
      <tr class="header-row">
        <td class="desc-header">DESCRIPTION</td>
        <td class="eval-header">EVALUATION</td>
      </tr>
      <tr class="score-row">
        <td class="score-label">SCORE</td>
        <td class="score-value">{{ percentage }}</td>
      </tr>
      {% for section in sections %}
      <tr class="category-row">
        <td class="category-title">{{ section.title }}</td>
        <td class="category-score">{{ section.score }}</td>
      </tr>
      {% for row in section.rows %}
      <tr class="question-row">
        <td class="question-text">{{ row.text }}</td>
        <td class="question-score">{{ row.score }}{% if row.marker %}<span class="has-content">&#9679;</span>{% endif %}</td>
      </tr>
      {% if row.notes %}
      <tr class="notes-row">
        <td class="notes-text" colspan="2">NOTES: {{ row.notes }}</td>
      </tr>
      {% endif %}
      {% endfor %}
      {% endfor %}
    </table>

    {% if photos %}
    <div class="page-break"></div>
    <div class="photo-section">
      <h2 class="section-title">PHOTOGRAPHIC REPORT AND FINDINGS</h2>
      {% for photo in photos %}
      <div class="photo-item">
        <h3 class="photo-title">{{ photo.title }}</h3>
        <div class="photo-container">
          <img src="{{ photo.src }}" alt="Inspection photo" class="inspection-photo" />
        </div>
        <div class="photo-status">
          <div class="status-badge {{ photo.badge_class }}">{{ photo.badge_label }}</div>
        </div>
        <div class="photo-timestamp">{{ photo.timestamp }}</div>
        {% if photo.notes %}
        <div class="photo-notes"><strong>Notes:</strong> {{ photo.notes }}</div>
        {% endif %}
      </div>
      {% endfor %}
    </div>
    {% endif %}
  </div>
</body>
</html>
"""

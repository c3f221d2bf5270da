"""
HTML Generator for graded essays.
Renders annotated text as red-ink corrections and builds a standalone report.
"""

from html import escape
from typing import Iterable, Optional

from essay_grader.schemas.grading import GradingResult, HistoryEntry
from essay_grader.services.annotated_text import (
    AnnotatedText,
    Correction,
    MarkedSegment,
    Segment,
)


def render_segments(segments: Iterable[Segment]) -> str:
    """
    Render display segments as inline HTML.

    Corrections become ``<del class="error">`` followed by
    ``<span class="correction">``; the reason, when present, is shown as a
    tooltip (``title``) and a small note marker.
    """
    html_parts = []
    for segment in segments:
        if isinstance(segment, Correction):
            title = f' title="{escape(segment.reason)}"' if segment.has_reason else ""
            note = '<sup class="note">?</sup>' if segment.has_reason else ""
            html_parts.append(
                f'<span class="annotation"{title}>'
                f'<del class="error">{escape(segment.original)}</del>'
                f'<span class="correction">{escape(segment.correction)}</span>{note}</span>'
            )
        elif isinstance(segment, MarkedSegment):
            if segment.style == "error":
                html_parts.append(f'<del class="error">{escape(segment.text)}</del>')
            else:
                html_parts.append(f'<span class="correction">{escape(segment.text)}</span>')
        else:
            html_parts.append(escape(segment.text))
    return "".join(html_parts)


def render_annotated_text(text: Optional[str]) -> str:
    """Render an annotated text (marker or legacy format) as HTML paragraphs."""
    body = render_segments(AnnotatedText(text))
    paragraphs = [p.strip() for p in body.split("\n\n") if p.strip()]
    return "\n".join(f"<p>{p.replace(chr(10), '<br>')}</p>" for p in paragraphs)


class HTMLGenerator:
    """Generate a graded essay report as HTML with red-ink corrections."""

    def generate(self, result: GradingResult, output_path: str) -> str:
        """
        Generate a complete HTML file with embedded styles.

        Args:
            result: Grading result or history entry to render
            output_path: Where to save the HTML file

        Returns:
            Path to generated HTML file
        """
        self._save_html(self.build_html(result), output_path)
        return output_path

    def build_html(self, result: GradingResult) -> str:
        """Build complete HTML document with embedded CSS."""
        css = self._get_css_styles()
        title = f"Graded Essay - {escape(result.student_name)}"

        meta = [f"Score: <strong>{escape(str(result.score))}</strong>"]
        if isinstance(result, HistoryEntry):
            meta.append(f"Level: {escape(result.level)}")
            meta.append(f"Date: {escape(result.date)}")
        if result.model_used:
            meta.append(f"Model: {escape(result.model_used)}")

        return f"""<!DOCTYPE html>
<html lang="en">
<head>
    <meta charset="UTF-8">
    <meta name="viewport" content="width=device-width, initial-scale=1.0">
    <title>{title}</title>
    <style>
{css}
    </style>
</head>
<body>
    <h1>{escape(result.title)}</h1>
    <p class="meta">{escape(result.student_name)} &middot; {' &middot; '.join(meta)}</p>

    {self._summary_section(result)}

    <h2>Revised Essay</h2>
    {render_annotated_text(result.diff_text or result.ocr_text)}

    {self._list_section("Spelling Errors", result.spelling_errors)}

    <h2>Teacher's Comments</h2>
    <p>{escape(result.comments)}</p>

    {self._list_section("Suggestions", result.suggestions)}
</body>
</html>"""

    def _summary_section(self, result: GradingResult) -> str:
        items = []
        if result.strength_summary:
            items.append(f'<li class="strength">{escape(result.strength_summary)}</li>')
        if result.improvement_summary:
            items.append(f'<li class="improvement">{escape(result.improvement_summary)}</li>')
        if not items:
            return ""
        return '<ul class="summary">' + "".join(items) + "</ul>"

    def _list_section(self, heading: str, items: list) -> str:
        if not items:
            return ""
        rows = "".join(f"<li>{escape(item)}</li>" for item in items)
        return f"<h2>{heading}</h2>\n<ul>{rows}</ul>"

    def _get_css_styles(self) -> str:
        """Return CSS styles for red-ink grading."""
        return """/* Base styles */
body {
    font-family: Georgia, 'Times New Roman', serif;
    font-size: 16px;
    line-height: 1.8;
    color: #000;
    max-width: 800px;
    margin: 40px auto;
    padding: 20px;
    background: #fff;
}

/* Student's original: black text, red strikethrough */
.error {
    text-decoration: line-through;
    text-decoration-color: #e74c3c;
    text-decoration-thickness: 2px;
    color: #000;
}

/* Teacher's correction */
.correction {
    color: #047857;
    font-weight: 600;
}

.annotation {
    cursor: help;
    white-space: pre-wrap;
}

.note {
    color: #10b981;
    margin-left: 2px;
}

.meta {
    color: #64748b;
    font-size: 14px;
}

.summary .strength::marker { content: "+ "; color: #047857; }
.summary .improvement::marker { content: "> "; color: #b45309; }

h1 {
    font-size: 24px;
    margin-bottom: 10px;
    border-bottom: 2px solid #e74c3c;
    padding-bottom: 10px;
}

h2 {
    font-size: 20px;
    margin-top: 30px;
    margin-bottom: 15px;
}

p {
    margin-bottom: 15px;
}

ul {
    margin-left: 25px;
    margin-bottom: 15px;
}

li {
    margin-bottom: 10px;
}
"""

    def _save_html(self, content: str, path: str):
        """Save HTML content to file."""
        with open(path, "w", encoding="utf-8") as f:
            f.write(content)

"""
Export a quiz to .docx: title, then Questions, Answer key, Explanations (one section per page).
"""
from io import BytesIO
from docx import Document as DocxDocument
from docx.shared import Pt

from app.models.quiz import Quiz

OPTION_LABELS = "ABCD"


def _label(index) -> str:
    if isinstance(index, int) and 0 <= index < len(OPTION_LABELS):
        return OPTION_LABELS[index]
    return "?"


def build_quiz_docx(quiz: Quiz) -> BytesIO:
    """Return a BytesIO containing the .docx file."""
    questions = quiz.questions or []
    doc = DocxDocument()
    style = doc.styles["Normal"]
    style.font.size = Pt(11)

    doc.add_heading(quiz.title, level=0)
    doc.add_heading("Questions", level=1)
    for n, q in enumerate(questions, start=1):
        p = doc.add_paragraph()
        p.add_run(f"Q{n}. ").bold = True
        p.add_run(q.get("question", ""))
        for i, opt in enumerate(q.get("options") or []):
            doc.add_paragraph(f"  {_label(i)}. {opt}", style="List Bullet")

    doc.add_page_break()
    doc.add_heading("Answer key", level=1)
    for n, q in enumerate(questions, start=1):
        doc.add_paragraph(f"Q{n}. {_label(q.get('correct'))}")

    doc.add_page_break()
    doc.add_heading("Explanations", level=1)
    for n, q in enumerate(questions, start=1):
        p = doc.add_paragraph()
        p.add_run(f"Q{n}. ").bold = True
        p.add_run(q.get("explanation", ""))

    buf = BytesIO()
    doc.save(buf)
    buf.seek(0)
    return buf

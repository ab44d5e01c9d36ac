import re
from typing import List, Tuple

from pypdf import PdfReader
from docx import Document as DocxDocument

from .errors import UnsupportedFormat

TEXT_EXTENSIONS = (".txt", ".md", ".markdown")
DOCX_MIME = "application/vnd.openxmlformats-officedocument.wordprocessingml.document"

# Sentence boundary: terminal punctuation followed by whitespace.
_SENTENCE_END = re.compile(r"(?<=[.!?])\s+")


def read_text_from_pdf(file_path: str) -> str:
    pdf = PdfReader(file_path)
    parts = []
    for page in pdf.pages:
        parts.append(page.extract_text() or "")
    return "\n".join(parts)


def read_text_from_docx(file_path: str) -> str:
    """
    Extract text from DOCX file including both paragraphs and tables.
    Tables are converted to readable text format.
    """
    doc = DocxDocument(file_path)
    parts = []

    for para in doc.paragraphs:
        text = para.text.strip()
        if text:
            parts.append(text)

    for table in doc.tables:
        table_text = extract_table_text(table)
        if table_text:
            parts.append("\n" + table_text)

    return "\n\n".join(parts)


def extract_table_text(table) -> str:
    """
    Convert a DOCX table to text, one row per line with pipe separators.
    """
    lines = []
    for row in table.rows:
        cells = [cell.text.strip() for cell in row.cells]
        if not any(cells):
            continue
        lines.append(" | ".join(cells))
    return "\n".join(lines)


def read_text_from_txt(file_path: str, encoding="utf-8") -> str:
    with open(file_path, "r", encoding=encoding, errors="ignore") as f:
        return f.read()


def read_any(file_path: str, mime: str, filename: str) -> Tuple[str, str]:
    """
    Extract text from a stored upload.

    Returns (text, kind). Raises UnsupportedFormat for anything that is not
    plain text, markdown, PDF or DOCX, and for PDF/DOCX files the parser
    cannot open.
    """
    name = (filename or "").lower()
    mime = mime or ""
    if name.endswith(".pdf") or mime == "application/pdf":
        reader, kind = read_text_from_pdf, "pdf"
    elif name.endswith(".docx") or mime == DOCX_MIME:
        reader, kind = read_text_from_docx, "docx"
    elif name.endswith(TEXT_EXTENSIONS) or mime.startswith("text/"):
        return read_text_from_txt(file_path), "txt"
    else:
        raise UnsupportedFormat(
            f"Unsupported file type for '{filename}'. Upload text, markdown, PDF or DOCX files."
        )

    try:
        return reader(file_path), kind
    except Exception as e:
        # pypdf and python-docx raise a wide range of errors on damaged input
        raise UnsupportedFormat(f"Could not read '{filename}' as {kind.upper()}: {e}") from e


def split_sentences(text: str) -> List[str]:
    return [s for s in _SENTENCE_END.split(text) if s.strip()]


def chunk_text(text: str, max_chunk_size: int) -> List[str]:
    """
    Greedily pack sentences into chunks of at most max_chunk_size characters.

    A sentence that alone exceeds the limit becomes its own chunk, uncut.
    Sentences inside a chunk are joined by a single space; chunks are trimmed
    and empty ones dropped.
    """
    chunks: List[str] = []
    buffer = ""

    for sentence in split_sentences(text):
        candidate = f"{buffer} {sentence}" if buffer else sentence
        if len(candidate) > max_chunk_size and buffer:
            chunks.append(buffer.strip())
            buffer = sentence
        else:
            buffer = candidate

    if buffer.strip():
        chunks.append(buffer.strip())

    return [c for c in chunks if c]

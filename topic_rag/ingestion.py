"""Reading source text from files on disk."""

from __future__ import annotations

import os
from pathlib import Path

import docx2txt
from pypdf import PdfReader

SUPPORTED_EXTENSIONS = {".pdf", ".docx", ".txt", ".md"}


def _read_pdf(path: Path) -> str:
    """Extract text from a PDF file."""

    reader = PdfReader(path)
    pages = []
    for page in reader.pages:
        pages.append(page.extract_text() or "")
    return "\n".join(pages)


def _read_docx(path: Path) -> str:
    return docx2txt.process(str(path)) or ""


def _read_txt(path: Path) -> str:
    return path.read_text(encoding="utf-8", errors="ignore")


READERS = {
    ".pdf": _read_pdf,
    ".docx": _read_docx,
    ".txt": _read_txt,
    ".md": _read_txt,
}


def load_text(path: str | os.PathLike[str]) -> str:
    """Return the plain text content of a supported file."""

    file_path = Path(path)
    if not file_path.exists():
        raise FileNotFoundError(f"File {file_path} does not exist")

    extension = file_path.suffix.lower()
    if extension not in SUPPORTED_EXTENSIONS:
        raise ValueError(f"Unsupported file type: {extension}")

    return READERS[extension](file_path)

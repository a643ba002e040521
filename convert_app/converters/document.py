import asyncio
import logging
import os
import shutil
from pathlib import Path

import jinja2
from docx import Document
from pypdf import PdfReader

from ..core.errors import ConversionError
from ..models.artifact import ConvertedArtifact
from ..models.category import DocumentFormat
from .base import Converter

logger = logging.getLogger(__name__)

WORD_EXTENSIONS = {".docx", ".doc"}
PLACEHOLDER_TEXT = "Converted successfully"

# Helvetica 12pt, text starting 100pt from the top-left corner of a Letter page
PDF_TEMPLATE = jinja2.Environment(autoescape=True).from_string(
    """<!DOCTYPE html>
<html>
<head>
<meta charset="utf-8">
<style>
  @page { size: letter; margin: 100pt 72pt 72pt 100pt; }
  body { margin: 0; font-family: Helvetica, Arial, sans-serif; font-size: 12pt; }
  pre { margin: 0; font-family: inherit; white-space: pre-wrap; overflow-wrap: break-word; }
</style>
</head>
<body><pre>{{ text }}</pre></body>
</html>
"""
)


def extract_pdf_text(path: Path) -> str:
    '''Extracts the text layer of every page with pypdf'''
    reader = PdfReader(str(path))
    return "\n".join(page.extract_text() or "" for page in reader.pages)


def extract_word_text(path: Path) -> str:
    '''Extracts raw paragraph text from a Word document with python-docx'''
    document = Document(str(path))
    return "\n".join(paragraph.text for paragraph in document.paragraphs)


def read_plain_text(path: Path) -> str:
    return path.read_text(encoding="utf-8", errors="replace")


def render_pdf(text: str, target: Path) -> None:
    '''Lays out text as a PDF with WeasyPrint; returns once the file is fully written'''
    from weasyprint import HTML

    html = PDF_TEMPLATE.render(text=text or PLACEHOLDER_TEXT)
    HTML(string=html).write_pdf(str(target))


def _to_text(source: Path, target: Path, ext: str) -> None:
    if ext == ".pdf":
        text = extract_pdf_text(source)
    elif ext in WORD_EXTENSIONS:
        text = extract_word_text(source)
    else:
        # Already text: copy the bytes untouched
        shutil.copyfile(source, target)
        return
    target.write_text(text, encoding="utf-8")


def _to_pdf(source: Path, target: Path, ext: str) -> None:
    if ext in WORD_EXTENSIONS:
        text = extract_word_text(source)
    elif ext == ".txt":
        text = read_plain_text(source)
    else:
        # pdf, rtf and unknown sources get the placeholder page
        text = ""
    render_pdf(text, target)


class DocumentConverter(Converter):
    """
    Converts documents between text-centric formats.

    Any source converts to txt. For pdf output, txt and doc/docx text is
    laid out; other sources produce a placeholder page. The source type
    comes from the original file name's extension.
    """

    async def convert(self, source: Path, fmt: str, original_name: str) -> ConvertedArtifact:
        target_format = DocumentFormat.parse(fmt)
        if target_format is None:
            raise ConversionError(f"unsupported document format: {fmt}")
        if target_format == DocumentFormat.DOCX:
            raise ConversionError("DOCX conversion not implemented")

        ext = os.path.splitext(original_name or "")[1].lower()

        artifact = self.new_artifact(target_format.value)
        worker = _to_text if target_format == DocumentFormat.TXT else _to_pdf
        try:
            await asyncio.to_thread(worker, source, artifact.path, ext)
        except ConversionError:
            raise
        except Exception as e:
            raise ConversionError(f"document conversion failed: {e}") from e

        logger.info(f"Converted document {source.name} to {artifact.file_name}")
        return artifact

"""
Text Extraction Dispatch

This module routes an uploaded file to the extractor registered for its
extension and returns the full extracted text as one string.

Responsibilities
----------------
- Explicit extension allow-listing (case-insensitive)
- Deterministic, numerically ordered output for multi-part sources
  (PDF pages, PPTX slides)
- Uniform error behavior: every parser failure becomes ``ExtractionFailedError``

No extractor retries; callers resubmit the upload.
"""

from __future__ import annotations

import html
import re
import zipfile
from pathlib import Path
from typing import Callable, Dict, List, Tuple

from pypdf import PdfReader

from ..core.errors import ExtractionFailedError, UnsupportedFormatError


Extractor = Callable[[Path], str]

_SLIDE_PATH = re.compile(r"^ppt/slides/slide(\d+)\.xml$", re.IGNORECASE)
_TEXT_RUN = re.compile(r"<a:t(?:\s[^>]*)?>([\s\S]*?)</a:t>")
_WHITESPACE = re.compile(r"\s+")


# ---------------------------------------------------------------------
# Extractors
# ---------------------------------------------------------------------

def extract_pdf(path: Path) -> str:
    """
    Extract page text from a PDF, one line per page, in page order.
    """
    try:
        reader = PdfReader(str(path))
        pages = [page.extract_text() or "" for page in reader.pages]
    except Exception as exc:
        raise ExtractionFailedError(
            f"Could not read PDF '{path.name}': {type(exc).__name__}"
        ) from exc

    return "".join(f"{text}\n" for text in pages)


def _slide_entries(archive: zipfile.ZipFile) -> List[Tuple[int, str]]:
    slides = []
    for name in archive.namelist():
        match = _SLIDE_PATH.match(name)
        if match:
            slides.append((int(match.group(1)), name))
    # slide2 before slide10
    slides.sort(key=lambda entry: entry[0])
    return slides


def extract_pptx(path: Path) -> str:
    """
    Extract the text runs (``<a:t>``) of every slide, one line per slide.

    Slides are ordered by their numeric suffix, not lexicographically.
    """
    try:
        with zipfile.ZipFile(path) as archive:
            slides = _slide_entries(archive)
            if not slides:
                raise ExtractionFailedError(
                    f"Presentation '{path.name}' contains no slides."
                )

            lines = []
            for _, name in slides:
                xml = archive.read(name).decode("utf-8", errors="replace")
                tokens = [
                    _WHITESPACE.sub(" ", html.unescape(run)).strip()
                    for run in _TEXT_RUN.findall(xml)
                ]
                lines.append(" ".join(tokens))
    except ExtractionFailedError:
        raise
    except zipfile.BadZipFile as exc:
        raise ExtractionFailedError(
            f"Presentation '{path.name}' is not a valid PPTX archive."
        ) from exc
    except OSError as exc:
        raise ExtractionFailedError(
            f"Could not read presentation '{path.name}': {type(exc).__name__}"
        ) from exc
    except (RuntimeError, NotImplementedError) as exc:
        # Encrypted members or unsupported compression methods
        raise ExtractionFailedError(
            f"Cannot open presentation '{path.name}': {exc}"
        ) from exc

    return "\n".join(lines).strip()


def extract_plain_text(path: Path) -> str:
    """
    Read a text/markdown file as UTF-8, falling back to latin-1.
    """
    try:
        raw = path.read_bytes()
    except OSError as exc:
        raise ExtractionFailedError(
            f"Could not read file '{path.name}': {type(exc).__name__}"
        ) from exc

    try:
        return raw.decode("utf-8")
    except UnicodeDecodeError:
        return raw.decode("latin-1")


# ---------------------------------------------------------------------
# Extractor Registry (AUTHORITATIVE)
# ---------------------------------------------------------------------

EXTRACTORS: Dict[str, Extractor] = {
    ".pdf": extract_pdf,
    ".pptx": extract_pptx,
    ".txt": extract_plain_text,
    ".md": extract_plain_text,
}


def allowed_extensions() -> List[str]:
    return sorted(EXTRACTORS)


# ---------------------------------------------------------------------
# Public Dispatch API
# ---------------------------------------------------------------------

def extract_text(path: str | Path, filename: str) -> str:
    """
    Extract the full text of a stored upload.

    Parameters
    ----------
    path : str | Path
        Location of the uploaded bytes on disk.

    filename : str
        Original client filename; its extension selects the extractor.

    Returns
    -------
    str
        The extracted text.

    Raises
    ------
    UnsupportedFormatError
        If the extension has no registered extractor.

    ExtractionFailedError
        If the extractor cannot parse the file.
    """
    extension = Path(filename).suffix.lower()
    extractor = EXTRACTORS.get(extension)
    if extractor is None:
        raise UnsupportedFormatError(extension, EXTRACTORS.keys())

    return extractor(Path(path))

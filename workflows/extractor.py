"""Content type detection and bounded previews for files.

The Enricher only ever calls the two methods of ContentExtractor, so tests
can substitute a slow or failing extractor.
"""

import mimetypes
import os
from abc import ABC, abstractmethod
from typing import Optional

from pypdf import PdfReader

# Marker stored in place of a preview that could not be produced
UNPARSABLE = "[Unparsable content]"

# Type label used when detection fails or times out
UNKNOWN_TYPE = "unknown"

PREVIEW_CHARS = 500
SNIFF_BYTES = 8192
PDF_PREVIEW_PAGES = 3

# Leading bytes of common binary formats
_SIGNATURES = [
    (b"%PDF", "application/pdf"),
    (b"\x89PNG\r\n\x1a\n", "image/png"),
    (b"\xff\xd8\xff", "image/jpeg"),
    (b"GIF87a", "image/gif"),
    (b"GIF89a", "image/gif"),
    (b"PK\x03\x04", "application/zip"),
    (b"\x1f\x8b", "application/gzip"),
    (b"7z\xbc\xaf\x27\x1c", "application/x-7z-compressed"),
    (b"Rar!\x1a\x07", "application/x-rar-compressed"),
    (b"ID3", "audio/mpeg"),
    (b"fLaC", "audio/flac"),
    (b"OggS", "audio/ogg"),
]

ARCHIVE_TYPES = {
    "application/zip",
    "application/x-rar-compressed",
    "application/vnd.rar",
    "application/x-tar",
    "application/gzip",
    "application/x-7z-compressed",
    "application/x-bzip2",
}

TEXT_EXTENSIONS = {
    "txt", "md", "rs", "py", "js", "ts", "jsx", "tsx", "java", "c", "cpp",
    "h", "hpp", "go", "rb", "sh", "yaml", "yml", "toml", "json", "xml",
    "html", "css", "scss", "sql", "csv", "log", "conf", "cfg", "ini",
}


class ContentExtractor(ABC):
    """Produces a type label and a text preview for a file."""

    @abstractmethod
    def detect_type(self, path: str) -> str:
        """Return a human-readable type label such as "Text file"."""
        pass

    @abstractmethod
    def preview(self, path: str) -> Optional[str]:
        """Return a bounded preview, or None if the content can't be read."""
        pass


def _bounded(text: str) -> str:
    if len(text) > PREVIEW_CHARS:
        return text[:PREVIEW_CHARS] + "..."
    return text


class DefaultExtractor(ContentExtractor):
    """Extractor based on magic bytes, file extensions and pypdf."""

    def _read_head(self, path: str) -> bytes:
        with open(path, "rb") as f:
            return f.read(SNIFF_BYTES)

    def _mime_type(self, path: str, head: bytes) -> Optional[str]:
        """Best-effort MIME type, content signature first."""
        for signature, mime in _SIGNATURES:
            if head.startswith(signature):
                return mime
        guessed, _ = mimetypes.guess_type(path)
        return guessed

    def detect_type(self, path: str) -> str:
        head = self._read_head(path)
        mime = self._mime_type(path, head)
        extension = os.path.splitext(path)[1].lstrip(".").lower()

        if mime == "application/pdf":
            return "PDF document"
        if mime and mime.startswith("image/"):
            return f"Image ({mime})"
        if mime and mime.startswith("audio/"):
            return f"Audio ({mime})"
        if mime and mime.startswith("video/"):
            return f"Video ({mime})"
        if mime in ARCHIVE_TYPES:
            return f"Archive ({mime})"

        is_text_like = extension in TEXT_EXTENSIONS or (mime or "").startswith("text/")
        if is_text_like and b"\x00" not in head:
            return "Text file"
        return "Binary file"

    def preview(self, path: str) -> Optional[str]:
        label = self.detect_type(path)

        if label == "Text file":
            try:
                with open(path, "r", encoding="utf-8") as f:
                    return _bounded(f.read(PREVIEW_CHARS + 1))
            except UnicodeDecodeError:
                return None

        if label == "PDF document":
            return self._pdf_preview(path)

        if label.startswith("Image"):
            return f"[Image file: {label}]"
        if label.startswith(("Audio", "Video", "Archive")):
            kind, _, mime = label.partition(" ")
            return f"[{kind} file: {mime.strip('()')}]"
        return "[Binary file]"

    def _pdf_preview(self, path: str) -> Optional[str]:
        try:
            reader = PdfReader(path)
            parts = []
            for page in reader.pages[:PDF_PREVIEW_PAGES]:
                text = page.extract_text() or ""
                if text.strip():
                    parts.append(text.strip())
                if sum(len(p) for p in parts) > PREVIEW_CHARS:
                    break
        except Exception:
            return None
        if not parts:
            return None
        return _bounded("\n".join(parts))

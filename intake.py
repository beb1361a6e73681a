"""
Course material intake.

Holds the pasted text and at most one pending document (an image or a PDF),
encoded to base64 so it can be sent to a model. The upload size limit is a
soft one: oversized files are kept and flagged so the UI can warn about them.
"""

import base64
import mimetypes
from dataclasses import dataclass

import fitz  # PyMuPDF
import pymupdf4llm

from logger import setup_logger
from schemas import EncodedFile

logger = setup_logger(__name__)

PDF_MIME_TYPE = "application/pdf"
MAX_UPLOAD_BYTES = 20 * 1024 * 1024
ACCEPTED_EXTENSIONS = [
    "pdf",
    "png",
    "jpg",
    "jpeg",
    "webp",
    "gif",
    "bmp",
    "tif",
    "tiff",
    "avif",
    "heic",
    "heif",
    "svg",
]


class UnsupportedFileError(ValueError):
    """Raised for uploads that are neither an image nor a PDF."""


@dataclass
class UploadedFile:
    """A selected document, encoded and waiting for submission"""

    data: str
    mime_type: str
    name: str
    size: int
    max_bytes: int = MAX_UPLOAD_BYTES

    @property
    def is_image(self) -> bool:
        return self.mime_type.startswith("image/")

    @property
    def exceeds_soft_limit(self) -> bool:
        return self.size > self.max_bytes

    def to_payload(self) -> EncodedFile:
        return EncodedFile(data=self.data, mime_type=self.mime_type)


def is_accepted_mime_type(mime_type: str) -> bool:
    return mime_type.startswith("image/") or mime_type == PDF_MIME_TYPE


def resolve_mime_type(declared: str | None, name: str) -> str:
    """Use the declared media type, or guess it from the file name."""
    if declared:
        return declared
    guessed, _ = mimetypes.guess_type(name)
    return guessed or "application/octet-stream"


def encode_file(
    raw: bytes, mime_type: str, name: str, max_bytes: int = MAX_UPLOAD_BYTES
) -> UploadedFile:
    if not is_accepted_mime_type(mime_type):
        raise UnsupportedFileError(
            f"{name}: only images and PDF documents are supported, got {mime_type}"
        )
    encoded = base64.b64encode(raw).decode("utf-8")
    return UploadedFile(
        data=encoded, mime_type=mime_type, name=name, size=len(raw), max_bytes=max_bytes
    )


def pdf_to_markdown(payload: EncodedFile) -> str:
    """Extract the text of an encoded PDF as markdown."""
    doc = fitz.open(stream=base64.b64decode(payload.data), filetype="pdf")
    try:
        return pymupdf4llm.to_markdown(doc)
    finally:
        doc.close()


class ContentIntake:
    """Pending text and document for the next analysis."""

    def __init__(self, max_bytes: int = MAX_UPLOAD_BYTES):
        self.max_bytes = max_bytes
        self.text = ""
        self.file: UploadedFile | None = None
        self.revision = 0

    def set_text(self, text: str) -> None:
        self.text = text or ""

    def set_file(self, raw_file) -> UploadedFile:
        """
        Read and encode an uploaded file.

        Args:
            raw_file: Object with `getvalue()`, `type` and `name`, such as a
                Streamlit UploadedFile.

        Returns:
            UploadedFile: the encoded file now pending.
        """
        mime_type = resolve_mime_type(getattr(raw_file, "type", None), raw_file.name)
        uploaded = encode_file(
            raw_file.getvalue(), mime_type, raw_file.name, self.max_bytes
        )
        self.file = uploaded
        logger.info(
            "Selected %s (%s, %d bytes)", uploaded.name, uploaded.mime_type, uploaded.size
        )
        if uploaded.exceeds_soft_limit:
            logger.warning(
                "%s is larger than the advertised %d byte limit",
                uploaded.name,
                self.max_bytes,
            )
        return uploaded

    def clear_file(self) -> None:
        self.file = None
        self.revision += 1

    def take_file(self) -> EncodedFile | None:
        """Return the pending file payload and clear it."""
        if self.file is None:
            return None
        payload = self.file.to_payload()
        self.clear_file()
        return payload

    def can_submit(self) -> bool:
        return bool(self.text.strip()) or self.file is not None

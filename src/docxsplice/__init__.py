"""docxsplice - merge, split and fill DOCX documents at body-element level."""

from .document import Document
from .errors import DocxspliceError, PageIndexError
from .models import DEFAULT_PATTERN, MergeOptions, PageInfo, TemplateOptions

__all__ = [
    "DEFAULT_PATTERN",
    "Document",
    "DocxspliceError",
    "MergeOptions",
    "PageIndexError",
    "PageInfo",
    "TemplateOptions",
]

"""Validation utilities for common data types."""

import os
import re
from typing import Optional
from email_validator import validate_email as _validate_email, EmailNotValidError

from core.utils.formatting import format_file_size


# Extension -> accepted content types for job description uploads
ALLOWED_JD_TYPES: dict[str, frozenset[str]] = {
    ".pdf": frozenset({"application/pdf"}),
    ".doc": frozenset({"application/msword"}),
    ".docx": frozenset({
        "application/vnd.openxmlformats-officedocument.wordprocessingml.document",
    }),
}


def validate_email(email: str) -> tuple[bool, Optional[str]]:
    """
    Validate email address format.

    Args:
        email: Email address to validate

    Returns:
        Tuple of (is_valid, normalized_email or error_message)
    """
    try:
        validation = _validate_email(email, check_deliverability=False)
        return True, validation.normalized
    except EmailNotValidError as e:
        return False, str(e)


def sanitize_filename(filename: str) -> str:
    """
    Sanitize filename by removing dangerous characters.

    Args:
        filename: Original filename

    Returns:
        Sanitized filename
    """
    # Strip any client-side directory part
    filename = filename.replace('\\', '/').rsplit('/', 1)[-1]

    sanitized = re.sub(r'[<>:"/\\|?*\x00-\x1f]', '', filename)
    sanitized = sanitized.replace(' ', '_')

    if len(sanitized) > 255:
        name, ext = sanitized.rsplit('.', 1) if '.' in sanitized else (sanitized, '')
        sanitized = name[:250] + ('.' + ext if ext else '')

    return sanitized


def validate_jd_upload(
    filename: Optional[str],
    content_type: Optional[str],
    size: int,
    max_size: int,
) -> tuple[bool, Optional[str]]:
    """
    Validate a job description upload.

    Only .pdf, .doc and .docx files with a matching content type are allowed,
    up to ``max_size`` bytes.

    Args:
        filename: Original client filename
        content_type: Declared MIME type
        size: Payload size in bytes
        max_size: Size ceiling in bytes

    Returns:
        Tuple of (is_valid, error_message)
    """
    if not filename:
        return False, "No file was uploaded."

    ext = os.path.splitext(filename)[1].lower()
    accepted = ALLOWED_JD_TYPES.get(ext)
    mime = (content_type or "").split(";", 1)[0].strip().lower()
    if accepted is None or mime not in accepted:
        return False, "Only .pdf, .doc, and .docx files are allowed."

    if size <= 0:
        return False, "The uploaded file is empty."

    if size > max_size:
        return False, f"File exceeds the maximum allowed size of {format_file_size(max_size)}."

    return True, None

"""Formatting utilities for codes, names and display values."""

import re


SEQUENCE_WIDTH = 3


def title_case(text: str) -> str:
    """
    Normalise a master-data name to Title Case.

    Each whitespace-delimited word gets an upper-case first letter and a
    lower-case remainder; surrounding whitespace is stripped.

    Args:
        text: Raw name

    Returns:
        Normalised name (e.g., "human resources " -> "Human Resources")
    """
    return re.sub(
        r"\w\S*",
        lambda match: match.group(0)[0].upper() + match.group(0)[1:].lower(),
        text,
    ).strip()


def derive_code_prefix(name: str) -> str:
    """
    Build a code prefix from the initials of each word in a name.

    Args:
        name: Job position name

    Returns:
        Upper-cased initials (e.g., "Senior Software Engineer" -> "SSE")
    """
    return "".join(word[0] for word in name.split()).upper()


def format_sequence_code(prefix: str, count: int, width: int = SEQUENCE_WIDTH) -> str:
    """
    Append a zero-padded counter value to a prefix.

    Counts wider than ``width`` keep all their digits.

    Args:
        prefix: Code prefix
        count: Counter value
        width: Minimum number of digits

    Returns:
        Code (e.g., ("SSE", 1) -> "SSE001")
    """
    return f"{prefix}{str(count).zfill(width)}"


def format_file_size(size_bytes: int) -> str:
    """
    Format file size in human-readable format.

    Args:
        size_bytes: Size in bytes

    Returns:
        Formatted file size string
    """
    size = float(size_bytes)
    for unit in ['B', 'KB', 'MB', 'GB', 'TB']:
        if size < 1024.0:
            return f"{size:.1f} {unit}"
        size /= 1024.0
    return f"{size:.1f} PB"


def mask_email(email: str) -> str:
    """
    Mask email address for privacy.

    Args:
        email: Email address to mask

    Returns:
        Masked email (e.g., "j***@example.com")
    """
    if '@' not in email:
        return email

    local, domain = email.split('@', 1)

    if len(local) <= 2:
        masked_local = local[0] + '*'
    else:
        masked_local = local[0] + '*' * (len(local) - 2) + local[-1]

    return f"{masked_local}@{domain}"

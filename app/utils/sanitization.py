import os
import re
import uuid
from typing import Optional

import bleach

# Formatting allowed in shared notes and checklist item text
ALLOWED_TAGS = [
    "p",
    "br",
    "strong",
    "b",
    "em",
    "i",
    "u",
    "a",
    "ul",
    "ol",
    "li",
    "h1",
    "h2",
    "h3",
    "h4",
    "blockquote",
    "code",
    "pre",
]
ALLOWED_ATTRIBUTES = {"a": ["href", "title", "target"], "*": ["class"]}
ALLOWED_PROTOCOLS = ["http", "https", "mailto", "tel"]


def sanitize_html(html_content: Optional[str], allowed_tags: Optional[list] = None) -> Optional[str]:
    """
    Sanitize HTML content to prevent XSS attacks

    Args:
        html_content: Raw HTML content
        allowed_tags: List of allowed HTML tags (default: safe subset)

    Returns:
        Sanitized HTML
    """
    if html_content is None:
        return None

    return bleach.clean(
        html_content,
        tags=allowed_tags if allowed_tags is not None else ALLOWED_TAGS,
        attributes=ALLOWED_ATTRIBUTES,
        protocols=ALLOWED_PROTOCOLS,
        strip=True,
    )


def sanitize_plain_text(value: Optional[str]) -> Optional[str]:
    """Strip every tag, leaving plain text"""
    if value is None:
        return None
    return bleach.clean(value, tags=[], attributes={}, strip=True).strip()


def sanitize_filename(filename: str) -> str:
    """
    Sanitize filename to prevent directory traversal and other attacks
    """
    filename = os.path.basename(filename or "")
    filename = re.sub(r"[^\w\s\-\.]", "", filename)
    filename = filename.strip(". ")

    if len(filename) > 255:
        name, ext = os.path.splitext(filename)
        filename = name[: 255 - len(ext)] + ext

    if not filename:
        filename = f"file_{uuid.uuid4().hex[:8]}"

    return filename


def safe_storage_name(name: str) -> str:
    """Collapse anything that is not alphanumeric into underscores, e.g. for backup file names"""
    return re.sub(r"[^a-zA-Z0-9]", "_", name or "").strip("_") or "organization"

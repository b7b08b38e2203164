"""Request-field checks shared by the API handlers and the generation client."""

from __future__ import annotations

from typing import Any, Optional

from app.core.errors import InvalidInputError


def require_content(content: Any, field: str = "Content") -> str:
    if not isinstance(content, str) or not content.strip():
        raise InvalidInputError(f"{field} is required")
    return content.strip()


def resolve_count(count: Optional[int], *, default: int, maximum: int) -> int:
    """Missing or non-positive counts fall back to ``default``."""
    if count is None or count <= 0:
        return default
    if count > maximum:
        raise InvalidInputError(f"count must be at most {maximum}")
    return count


def resolve_model(model: Optional[str]) -> str:
    return (model or "").strip() or "auto"


TITLE_MAX_LENGTH = 50


def derive_title(content: str, max_length: int = TITLE_MAX_LENGTH) -> str:
    """First words of the content, cut at a word boundary when one is close."""
    cleaned = " ".join(content.split())
    if len(cleaned) <= max_length:
        return cleaned
    truncated = cleaned[:max_length]
    last_space = truncated.rfind(" ")
    if last_space > max_length * 0.7:
        return truncated[:last_space] + "..."
    return truncated + "..."

"""UI-facing copy builders for action confirmations and notifications."""

from __future__ import annotations


def _ensure_sentence(text: str) -> str:
    """Return text with terminal sentence punctuation."""
    cleaned = text.strip()
    if not cleaned:
        return ""
    if cleaned.endswith((".", "!", "?")):
        return cleaned
    return f"{cleaned}."


def build_actionable_error(
    action: str,
    *,
    next_step: str,
    why: str | None = None,
) -> str:
    """Build a 2-3 line actionable error message."""
    lines = [f"Could not {action.strip()}."]
    if why:
        lines.append(f"Why: {_ensure_sentence(why)}")
    lines.append(build_next_step_hint(next_step))
    return "\n".join(lines)


def build_next_step_hint(next_step: str) -> str:
    """Build a canonical next-step guidance line."""
    return f"Next step: {_ensure_sentence(next_step)}"


def build_results_count_label(count: int) -> str:
    """Build the "Found N results" label shown next to the search box."""
    return f"Found {count} result{'s' if count != 1 else ''}"


def build_added_notification(title: str, rating: int) -> str:
    return f"Added {title} to your watched list ({rating}/10)"


def build_removed_notification(title: str) -> str:
    return f"Removed {title} from your watched list"


def build_watched_count_label(count: int) -> str:
    return f"{count} movie{'s' if count != 1 else ''}"


__all__ = [
    "build_actionable_error",
    "build_added_notification",
    "build_next_step_hint",
    "build_removed_notification",
    "build_results_count_label",
    "build_watched_count_label",
]

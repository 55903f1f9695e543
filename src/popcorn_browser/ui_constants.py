"""Internal UI constants for the PopcornBrowser app."""

from __future__ import annotations

from textual.binding import Binding, BindingType

APP_CSS = """
#main-container {
    height: 1fr;
}

#left-pane {
    width: 2fr;
    min-width: 40;
    height: 100%;
    border: tall $primary-darken-2;
}

#left-pane:focus-within {
    border: tall $accent;
}

#right-pane {
    width: 3fr;
    height: 100%;
    border: tall $primary-darken-2;
}

#right-pane:focus-within {
    border: tall $accent;
}

#search-input {
    margin: 0 1;
}

#results-count {
    padding: 0 1;
    color: $text-muted;
}

#movie-list, #watched-list {
    height: 1fr;
}

#details-scroll {
    padding: 0 1;
}

#watched-summary {
    padding: 0 1;
    background: $boost;
}

.collapsed {
    display: none;
}
"""

APP_BINDINGS: list[BindingType] = [
    Binding("q", "quit", "Quit", show=False),
    Binding("slash", "focus_search", "Search", show=False),
    Binding("a", "add_watched", "Add to list", show=False),
    Binding("d", "delete_watched", "Delete watched", show=False),
    # Collapsible panes
    Binding("bracketleft", "toggle_results_pane", "Toggle results", show=False),
    Binding("bracketright", "toggle_right_pane", "Toggle details and watched", show=False),
    # Star rating
    Binding("1", "rate(1)", "Rate 1", show=False),
    Binding("2", "rate(2)", "Rate 2", show=False),
    Binding("3", "rate(3)", "Rate 3", show=False),
    Binding("4", "rate(4)", "Rate 4", show=False),
    Binding("5", "rate(5)", "Rate 5", show=False),
    Binding("6", "rate(6)", "Rate 6", show=False),
    Binding("7", "rate(7)", "Rate 7", show=False),
    Binding("8", "rate(8)", "Rate 8", show=False),
    Binding("9", "rate(9)", "Rate 9", show=False),
    Binding("0", "rate(10)", "Rate 10", show=False),
]

# Keys routed through the KeyPressStream rather than Textual bindings
FOCUS_SEARCH_KEY = "enter"
CLOSE_DETAIL_KEY = "escape"

__all__ = [
    "APP_BINDINGS",
    "APP_CSS",
    "CLOSE_DETAIL_KEY",
    "FOCUS_SEARCH_KEY",
]

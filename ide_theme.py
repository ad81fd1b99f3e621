"""
IDE Theme: shared color palette and highlight patterns for the tracer window.
Kept apart from ide.py so that ide_trace.py can import it without cycles.
"""
from constants import KEYWORDS

# ── Theme Colors  (Catppuccin Mocha) ──
COLORS = {
    "bg":           "#1e1e2e",
    "bg_secondary": "#181825",
    "bg_tertiary":  "#11111b",
    "surface":      "#313244",
    "overlay":      "#45475a",
    "text":         "#cdd6f4",
    "subtext":      "#a6adc8",
    "green":        "#a6e3a1",
    "yellow":       "#f9e2af",
    "mauve":        "#cba6f7",
    "peach":        "#fab387",
    "lavender":     "#b4befe",
    "sky":          "#89dceb",
    "selection":    "#45475a",
    "cursor":       "#f5e0dc",
    "toolbar_bg":   "#181825",
    "status_bg":    "#181825",
    "accent":       "#89b4fa",
    "error":        "#f38ba8",
    "success":      "#a6e3a1",
    "button_bg":    "#313244",
    "button_hover": "#45475a",
    "executed":     "#2a2f3f",
    "current_line": "#3b3552",
}

# ── Listing highlight patterns ──
STEP_LABEL_PATTERN = r'^step-\d+:'
KEYWORD_PATTERN = r'\b(' + '|'.join(KEYWORDS) + r')\b'
STRING_PATTERN = r'"(?:\\.|[^"\\])*"'
NUMBER_PATTERN = r'\b\d+\b'
OPERATOR_PATTERN = r'<=|>=|==|!=|[<>=+\-*/%]'

ERROR_BANNER_MS = 5000

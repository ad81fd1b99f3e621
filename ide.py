"""
Step Tracer IDE: desktop debugger for step-language programs.
CustomTkinter + Tkinter hybrid GUI with dark Catppuccin theme: an editor
screen for writing the program and an execution screen with the
highlighted listing, the trace table and the console.
"""
import tkinter as tk
from tkinter import font as tkfont
import customtkinter as ctk
import os
import re
import sys

sys.path.insert(0, os.path.dirname(os.path.abspath(__file__)))
from parser import ParseError
from interpreter import InterpreterError
from session import InputError, Session, load_program
from trace_table import CURRENT, EXECUTED, format_console, listing_rows
from validator import ValidationError
from ide_theme import (
    COLORS, ERROR_BANNER_MS, KEYWORD_PATTERN, NUMBER_PATTERN,
    OPERATOR_PATTERN, STEP_LABEL_PATTERN, STRING_PATTERN,
)
from ide_trace import TracePanel

# ── CustomTkinter global setup ──
ctk.set_appearance_mode("dark")

EXAMPLE_PROGRAM = (
    'step-1: start\n'
    'step-2: read N\n'
    'step-3: Total = 0\n'
    'step-4: if (N > 0):\n'
    '          Total = Total + N\n'
    '          N = N - 1\n'
    '          goto step-4\n'
    'step-5: print "Total: " + Total\n'
    'step-6: stop\n'
)


# ═══════════════════════════════════════════════════════
#  Text widgets
# ═══════════════════════════════════════════════════════

class HighlightedText(tk.Text):
    """Text widget with step-language syntax colouring."""

    TAG_CONFIG = {
        "step_label": {"foreground": COLORS["accent"]},
        "keyword":    {"foreground": COLORS["mauve"]},
        "string":     {"foreground": COLORS["green"]},
        "number":     {"foreground": COLORS["peach"]},
        "operator":   {"foreground": COLORS["sky"]},
    }

    _REGEX_PATTERNS = [
        ("step_label", STEP_LABEL_PATTERN),
        ("number",     NUMBER_PATTERN),
        ("operator",   OPERATOR_PATTERN),
        ("keyword",    KEYWORD_PATTERN),
        ("string",     STRING_PATTERN),
    ]

    def __init__(self, parent, **kwargs):
        super().__init__(parent, **kwargs)
        for tag, cfg in self.TAG_CONFIG.items():
            self.tag_configure(tag, **cfg)

    def highlight_syntax(self):
        for tag in self.TAG_CONFIG:
            self.tag_remove(tag, "1.0", "end")
        for lineno, line in enumerate(self.get("1.0", "end-1c").split("\n"), start=1):
            for tag, pat in self._REGEX_PATTERNS:
                for m in re.finditer(pat, line, re.MULTILINE):
                    self.tag_add(tag, f"{lineno}.{m.start()}", f"{lineno}.{m.end()}")
        # Strings win over anything matched inside them
        self.tag_raise("string")


class CodeEditor(HighlightedText):
    """Editable program text, re-highlighted after each change (debounced)."""

    def __init__(self, parent, **kwargs):
        super().__init__(parent, **kwargs)
        self._highlight_job = None
        self.bind("<<Modified>>", self._on_modify)

    def _on_modify(self, _event=None):
        if self.edit_modified():
            if self._highlight_job:
                self.after_cancel(self._highlight_job)
            self._highlight_job = self.after(80, self.highlight_syntax)
            self.edit_modified(False)


class ListingView(HighlightedText):
    """Read-only program listing with executed / current line shading."""

    def __init__(self, parent, **kwargs):
        super().__init__(parent, **kwargs)
        self.tag_configure(EXECUTED, background=COLORS["executed"])
        self.tag_configure(CURRENT, background=COLORS["current_line"])
        self.tag_lower(EXECUTED)
        self.tag_lower(CURRENT)
        self.configure(state="disabled")

    def show(self, rows):
        self.configure(state="normal")
        self.delete("1.0", "end")
        self.insert("1.0", "\n".join(row.text for row in rows))
        for lineno, row in enumerate(rows, start=1):
            if row.status in (EXECUTED, CURRENT):
                self.tag_add(row.status, f"{lineno}.0", f"{lineno}.end+1c")
        self.highlight_syntax()
        self.configure(state="disabled")
        current = self.tag_ranges(CURRENT)
        if current:
            self.see(current[0])


class ConsolePanel(tk.Text):
    """Read-only console; spaces are shown as middle dots."""

    def __init__(self, parent, **kwargs):
        super().__init__(parent, **kwargs)
        self.configure(state="disabled")

    def show(self, text):
        self.configure(state="normal")
        self.delete("1.0", "end")
        self.insert("1.0", format_console(text))
        self.see("end")
        self.configure(state="disabled")


# ═══════════════════════════════════════════════════════
#  Main window
# ═══════════════════════════════════════════════════════

class TracerIDE:
    """Main window: editor screen and execution screen share one toolbar."""

    def __init__(self):
        self.root = ctk.CTk()
        self.root.title("Step Tracer")
        self.root.configure(fg_color=COLORS["bg_tertiary"])
        self.root.geometry("1200x760")
        self.root.minsize(900, 520)

        self.session = None
        self._banner_job = None

        self.code_font = tkfont.Font(family="Cascadia Code", size=12)
        if "Cascadia Code" not in tkfont.families():
            for fam in ("JetBrains Mono", "Fira Code", "Consolas", "Courier New", "monospace"):
                if fam in tkfont.families():
                    self.code_font = tkfont.Font(family=fam, size=12)
                    break

        self._build_ui()
        self._bind_shortcuts()
        self._show_editor_screen()
        self.editor.insert("1.0", EXAMPLE_PROGRAM)
        self.editor.highlight_syntax()

    # ═══════ UI Construction ═══════

    def _build_ui(self):
        ctk.CTkFrame(self.root, fg_color=COLORS["accent"],
                     corner_radius=0, height=2).pack(fill="x", side="top")
        self._build_toolbar()
        self._build_statusbar()

        self.paned = tk.PanedWindow(self.root, orient="horizontal",
                                    bg=COLORS["surface"], sashwidth=4, sashrelief="flat")
        self.paned.pack(fill="both", expand=True)

        self.left = tk.Frame(self.paned, bg=COLORS["bg"])
        self.paned.add(self.left, stretch="always", width=520)
        self.editor = CodeEditor(self.left, **self._text_options(undo=True))
        self.listing = ListingView(self.left, **self._text_options())

        right = tk.PanedWindow(self.paned, orient="vertical",
                               bg=COLORS["surface"], sashwidth=4, sashrelief="flat")
        self.paned.add(right, stretch="always")
        self.trace_panel = TracePanel(right)
        right.add(self.trace_panel, stretch="always", height=420)
        right.add(self._build_console(right), stretch="never")

    def _text_options(self, undo=False):
        return dict(font=self.code_font, bg=COLORS["bg"], fg=COLORS["text"],
                    insertbackground=COLORS["cursor"], selectbackground=COLORS["selection"],
                    relief="flat", bd=0, padx=8, pady=8, wrap="none", undo=undo)

    def _toolbar_button(self, parent, text, command, color=None, width=90):
        btn = ctk.CTkButton(
            parent, text=text, command=command,
            fg_color=color or COLORS["button_bg"],
            text_color=COLORS["bg_tertiary"] if color else COLORS["text"],
            hover_color=COLORS["button_hover"], corner_radius=8,
            font=("Segoe UI", 11, "bold" if color else "normal"), width=width, height=32,
        )
        btn.pack(side="left", padx=4, pady=8)
        return btn

    def _build_toolbar(self):
        toolbar = ctk.CTkFrame(self.root, fg_color=COLORS["toolbar_bg"],
                               corner_radius=0, height=48)
        toolbar.pack(fill="x", side="top")
        toolbar.pack_propagate(False)

        self.trace_btn = self._toolbar_button(toolbar, "▶  Start Trace", self.start_tracing,
                                              COLORS["green"], width=120)
        self.prev_btn = self._toolbar_button(toolbar, "◀  Back", self.previous_step)
        self.next_btn = self._toolbar_button(toolbar, "Next  ▶", self.next_step, COLORS["yellow"])
        self.restart_btn = self._toolbar_button(toolbar, "↺  Restart", self.restart)
        self.new_btn = self._toolbar_button(toolbar, "✎  New Code", self.new_code)

        ctk.CTkLabel(toolbar, text="Step Tracer", font=("Segoe UI", 12, "bold"),
                     text_color=COLORS["accent"]).pack(side="right", padx=16)

    def _build_console(self, parent):
        frame = tk.Frame(parent, bg=COLORS["bg_tertiary"])
        header = ctk.CTkFrame(frame, fg_color=COLORS["bg_secondary"], corner_radius=0, height=28)
        header.pack(fill="x")
        header.pack_propagate(False)
        ctk.CTkLabel(header, text="  CONSOLE", font=("Segoe UI", 9, "bold"),
                     text_color=COLORS["subtext"]).pack(side="left", padx=4, pady=2)

        self.input_row = ctk.CTkFrame(frame, fg_color=COLORS["bg_secondary"], corner_radius=0)
        self.input_label = ctk.CTkLabel(self.input_row, text="", font=("Segoe UI", 11),
                                        text_color=COLORS["yellow"])
        self.input_label.pack(side="left", padx=8)
        self.input_entry = ctk.CTkEntry(self.input_row, font=("Cascadia Code", 12),
                                        fg_color=COLORS["surface"], text_color=COLORS["text"],
                                        border_color=COLORS["overlay"], height=30)
        self.input_entry.pack(side="left", fill="x", expand=True, padx=4, pady=4)
        self.input_entry.bind("<Return>", lambda e: self.submit_input())
        ctk.CTkButton(self.input_row, text="Submit", command=self.submit_input,
                      fg_color=COLORS["accent"], text_color=COLORS["bg_tertiary"],
                      hover_color=COLORS["lavender"], width=80, height=30,
                      ).pack(side="right", padx=8)

        self.console = ConsolePanel(frame, font=self.code_font, bg=COLORS["bg_tertiary"],
                                    fg=COLORS["text"], relief="flat", bd=0,
                                    padx=12, pady=8, wrap="word", height=8)
        self.console.pack(fill="both", expand=True)
        return frame

    def _build_statusbar(self):
        status = ctk.CTkFrame(self.root, fg_color=COLORS["status_bg"],
                              corner_radius=0, height=26)
        status.pack(fill="x", side="bottom")
        status.pack_propagate(False)
        self.status_msg = ctk.CTkLabel(status, text="Ready", font=("Segoe UI", 9),
                                       text_color=COLORS["subtext"])
        self.status_msg.pack(side="left", padx=12)
        ctk.CTkLabel(
            status, text="F5 Start Trace  │  F7 Back  │  F8 Next  │  Ctrl+R Restart",
            font=("Segoe UI", 8), text_color=COLORS["overlay"],
        ).pack(side="right", padx=20)

    def _bind_shortcuts(self):
        self.root.bind("<F5>", lambda e: self.start_tracing())
        self.root.bind("<F7>", lambda e: self.previous_step())
        self.root.bind("<F8>", lambda e: self.next_step())
        self.root.bind("<Control-r>", lambda e: self.restart())

    # ═══════ Screens ═══════

    def _show_editor_screen(self):
        self.listing.pack_forget()
        self.editor.pack(fill="both", expand=True)
        self.editor.focus()
        self._update_buttons()

    def _show_execution_screen(self):
        self.editor.pack_forget()
        self.listing.pack(fill="both", expand=True)

    # ═══════ Actions ═══════

    def start_tracing(self):
        text = self.editor.get("1.0", "end-1c")
        try:
            program = load_program(text)
        except ValidationError as e:
            self._show_error(e.errors[0])
            return
        except ParseError as e:
            self._show_error(str(e))
            return
        self.session = Session(program)
        self.trace_panel.set_columns(program.variable_names())
        self._show_execution_screen()
        self._set_status("Tracing")
        self._refresh()

    def next_step(self):
        if self.session is None or not self.session.can_step:
            return
        try:
            self.session.step()
        except InterpreterError as e:
            self._show_error(str(e))
        self._refresh()

    def previous_step(self):
        if self.session is None:
            return
        self.session.step_back()
        self._refresh()

    def submit_input(self):
        if self.session is None or not self.session.state.waiting:
            return
        raw = self.input_entry.get()
        self.input_entry.delete(0, "end")
        try:
            self.session.provide_input(raw)
        except InputError as e:
            self._show_error(str(e))
        self._refresh()

    def restart(self):
        if self.session is None:
            return
        try:
            self.session.restart()
        except (ValidationError, ParseError) as e:
            self._show_error(str(e))
        self._refresh()

    def new_code(self):
        self.session = None
        self.editor.delete("1.0", "end")
        self.trace_panel.set_columns([])
        self.trace_panel.show([])
        self.console.show("")
        self._show_editor_screen()
        self._set_status("Ready")

    # ═══════ Display ═══════

    def _refresh(self):
        snap = self.session.snapshot_for_display()
        self.listing.show(listing_rows(self.session.program,
                                       snap.program_counter, snap.block_cursor))
        self.trace_panel.show(snap.trace_rows)
        self.console.show(snap.console_text)
        if snap.waiting_for_input:
            self.input_label.configure(text=f"read {snap.waiting_variable_name}:")
            self.input_row.pack(fill="x", before=self.console)
            self.input_entry.focus()
        else:
            self.input_row.pack_forget()
        if self.session.is_finished:
            self._set_status("Program stopped", COLORS["success"])
        self._update_buttons()

    def _update_buttons(self):
        running = self.session is not None
        self.prev_btn.configure(state="normal" if running and self.session.can_step_back
                                else "disabled")
        self.next_btn.configure(state="normal" if running and self.session.can_step
                                else "disabled")
        self.restart_btn.configure(state="normal" if running else "disabled")

    def _set_status(self, msg, color=None):
        self.status_msg.configure(text=msg, text_color=color or COLORS["subtext"])

    def _show_error(self, message):
        self._set_status(message, COLORS["error"])
        if self._banner_job:
            self.root.after_cancel(self._banner_job)
        self._banner_job = self.root.after(ERROR_BANNER_MS, lambda: self._set_status(""))

    def start(self):
        self.root.mainloop()


if __name__ == "__main__":
    app = TracerIDE()
    app.start()

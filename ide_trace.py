"""
IDE Trace Table Panel: one row per completed action of the session.
Extracted from ide.py to keep the main window module small.
"""
import tkinter as tk
from tkinter import ttk, filedialog, messagebox
import customtkinter as ctk

from ide_theme import COLORS
from trace_table import format_trace_csv, format_trace_text, trace_cells


class TracePanel(ctk.CTkFrame):
    """Trace table: Step, one column per program variable, Output.

    A row only shows the variables its action changed, so reading down a
    column gives the history of that variable.
    """

    def __init__(self, parent, **kwargs):
        super().__init__(parent, fg_color=COLORS["bg"], corner_radius=0, **kwargs)
        self.columns = []
        self.rows = []
        self._build_header()
        self._configure_treeview_style()
        self._build_tree()

    def _build_header(self):
        header = ctk.CTkFrame(self, fg_color=COLORS["bg_secondary"], corner_radius=0, height=32)
        header.pack(fill="x")
        header.pack_propagate(False)
        self.summary = ctk.CTkLabel(
            header, text="  TRACE TABLE",
            font=("Segoe UI", 9, "bold"), text_color=COLORS["subtext"],
        )
        self.summary.pack(side="left", padx=4)
        ctk.CTkButton(
            header, text="Export", font=("Segoe UI", 10),
            fg_color=COLORS["button_bg"], text_color=COLORS["text"],
            hover_color=COLORS["button_hover"], corner_radius=6,
            width=70, height=24, command=self._export,
        ).pack(side="right", padx=8, pady=4)

    def _configure_treeview_style(self):
        """Configure the ttk Treeview style to match the Catppuccin dark theme."""
        style = ttk.Style(self)
        style.theme_use("clam")
        style.configure("Trace.Treeview",
                        background=COLORS["bg"],
                        foreground=COLORS["text"],
                        fieldbackground=COLORS["bg"],
                        font=("Cascadia Code", 10),
                        rowheight=24)
        style.configure("Trace.Treeview.Heading",
                        background=COLORS["surface"],
                        foreground=COLORS["accent"],
                        font=("Segoe UI", 10, "bold"),
                        padding=(4, 4))
        style.map("Trace.Treeview",
                  background=[("selected", COLORS["selection"])],
                  foreground=[("selected", COLORS["text"])])

    def _build_tree(self):
        tree_frame = tk.Frame(self, bg=COLORS["bg"])
        tree_frame.pack(fill="both", expand=True)

        yscroll = ctk.CTkScrollbar(tree_frame, orientation="vertical",
                                   fg_color=COLORS["bg"],
                                   button_color=COLORS["surface"],
                                   button_hover_color=COLORS["overlay"])
        yscroll.pack(side="right", fill="y")

        self.tree = ttk.Treeview(tree_frame, show="headings", style="Trace.Treeview",
                                 yscrollcommand=yscroll.set)
        self.tree.pack(fill="both", expand=True)
        yscroll.configure(command=self.tree.yview)
        self.tree.tag_configure('even', background=COLORS["bg"])
        self.tree.tag_configure('odd', background=COLORS["bg_secondary"])

    def set_columns(self, columns):
        """Rebuild headings for a newly loaded program."""
        self.columns = list(columns)
        ids = ['step'] + [f"var{i}" for i in range(len(self.columns))] + ['output']
        self.tree.configure(columns=ids)
        self.tree.heading('step', text='Step')
        self.tree.column('step', width=60, minwidth=40, anchor='center')
        for col_id, name in zip(ids[1:-1], self.columns):
            self.tree.heading(col_id, text=name)
            self.tree.column(col_id, width=100, minwidth=50, anchor='center')
        self.tree.heading('output', text='Output')
        self.tree.column('output', width=180, minwidth=80)

    def show(self, rows):
        self.rows = list(rows)
        self.tree.delete(*self.tree.get_children())
        for i, row in enumerate(self.rows):
            values = [c.replace('\n', '\\n') for c in trace_cells(row, self.columns)]
            self.tree.insert('', 'end', values=values, tags=('even' if i % 2 == 0 else 'odd',))
        children = self.tree.get_children()
        if children:
            self.tree.see(children[-1])
        self.summary.configure(
            text=f"  TRACE TABLE  │  {len(self.rows)} rows  │  {len(self.columns)} variables")

    def _export(self):
        path = filedialog.asksaveasfilename(
            parent=self, title="Export Trace Table",
            defaultextension=".txt",
            filetypes=[("Text file", "*.txt"), ("CSV", "*.csv"), ("All", "*.*")])
        if not path:
            return
        if path.endswith('.csv'):
            content = format_trace_csv(self.rows, self.columns)
        else:
            content = format_trace_text(self.rows, self.columns)
        with open(path, 'w', encoding='utf-8') as f:
            f.write(content)
        messagebox.showinfo("Export", f"Exported to:\n{path}", parent=self)

from __future__ import annotations

import tkinter as tk
from tkinter import ttk

# NOTE: GUI-only module. No business logic here.

def build_ui(app) -> None:
    app.columnconfigure(0, weight=1)
    app.rowconfigure(0, weight=1)

    root = ttk.Frame(app, padding=10)
    root.grid(row=0, column=0, sticky="nsew")
    root.columnconfigure(0, weight=1)

    # Apply theme + styles FIRST so all widgets pick them up correctly
    try:
        style = ttk.Style()
        if style.theme_use() != "clam":
            style.theme_use("clam")
        style.configure("RunAccent.TButton", padding=(16, 6))
        style.map(
            "RunAccent.TButton",
            background=[("active", "#1e6bd6"), ("!disabled", "#1f76ff")],
            foreground=[("!disabled", "white")],
        )
    except tk.TclError:
        pass

    # ----- SOURCE (row 0) -----
    app.source_box = ttk.LabelFrame(root, text="Source workbook (optional)", padding=10)
    app.source_box.grid(row=0, column=0, sticky="ew")
    app.source_box.columnconfigure(1, weight=1)

    ttk.Label(app.source_box, text="File:").grid(row=0, column=0, sticky="w")
    app.source_file_var = tk.StringVar()
    ttk.Entry(app.source_box, textvariable=app.source_file_var).grid(row=0, column=1, sticky="ew", padx=(10, 10))
    ttk.Button(app.source_box, text="Browse", command=app.browse_source).grid(row=0, column=2, sticky="ew")

    app.fallback_hint_var = tk.StringVar(value=f"Blank uses {app.settings.source_path}")
    ttk.Label(app.source_box, textvariable=app.fallback_hint_var, foreground="#666666").grid(
        row=1, column=1, columnspan=2, sticky="w", padx=(10, 0), pady=(4, 0)
    )

    # ----- DESTINATION (row 1) -----
    app.dest_box = ttk.LabelFrame(root, text="Destination folder (optional)", padding=10)
    app.dest_box.grid(row=1, column=0, sticky="ew", pady=(10, 0))
    app.dest_box.columnconfigure(1, weight=1)

    ttk.Label(app.dest_box, text="Folder:").grid(row=0, column=0, sticky="w")
    app.dest_dir_var = tk.StringVar()
    ttk.Entry(app.dest_box, textvariable=app.dest_dir_var).grid(row=0, column=1, sticky="ew", padx=(10, 10))
    ttk.Button(app.dest_box, text="Browse", command=app.browse_destination).grid(row=0, column=2, sticky="ew")

    ttk.Label(app.dest_box, text=f"Blank uses {app.settings.output_dir}", foreground="#666666").grid(
        row=1, column=1, columnspan=2, sticky="w", padx=(10, 0), pady=(4, 0)
    )

    # ----- BOTTOM: STATUS + SPLIT BUTTON (row 2) -----
    bottom = ttk.Frame(root)
    bottom.grid(row=2, column=0, sticky="ew", pady=(12, 0))
    bottom.columnconfigure(0, weight=1)

    app.status_var = tk.StringVar(value="Idle")
    app.status_label = ttk.Label(bottom, textvariable=app.status_var, wraplength=480)
    app.status_label.grid(row=0, column=0, sticky="w")

    app.split_button = ttk.Button(bottom, text="SPLIT", style="RunAccent.TButton", command=app.run_split)
    app.split_button.grid(row=0, column=1, sticky="e")

from __future__ import annotations

import tkinter as tk
from tkinter import ttk
from typing import List, Tuple

from .algorithms import HEART_RATE_READINGS_PER_HOUR
from .data_model import HEADER_FIELDS, NUM_COLUMNS, TABLE_FIELDS

HEADER_LABELS = {
    "date": "Date",
    "record_id": "Record",
    "name": "Name",
    "age": "Age",
    "lmp": "LMP",
    "edd": "EDD",
    "gestational_age": "GA",
    "ultrasound": "US",
    "parity": "Parity",
    "blood_type": "Blood type",
    "baby_name": "Baby name",
    "start_date": "Start day",
}

TABLE_LABELS = {
    "real_time": "Time",
    "register_hour": "Hour",
    "amniotic_fluid": "Membranes",
    "liquor": "Liquor",
    "oxytocin": "Oxytocin",
    "medications": "Medications",
    "examiner": "Examiner",
    "notes": "Notes",
}


class TablePanel:
    def __init__(self, owner, parent: tk.Widget, *, actor) -> None:
        self.owner = owner
        self.actor = actor

        nb = ttk.Notebook(parent)
        nb.pack(side="top", fill="both", expand=True)
        self.frame = nb

        # Header
        hdr = ttk.Frame(nb, padding=8)
        nb.add(hdr, text="Header")
        owner.header_vars = {}
        for row, name in enumerate(HEADER_FIELDS):
            var = tk.StringVar(value="")
            owner.header_vars[name] = var
            ttk.Label(hdr, text=HEADER_LABELS[name]).grid(row=row, column=0, sticky="w", pady=1)
            ent = ttk.Entry(hdr, textvariable=var, width=28)
            ent.grid(row=row, column=1, sticky="ew", padx=(6, 0), pady=1)
            ent.bind("<FocusOut>", lambda _e, n=name: actor._on_header_commit(n))
            ent.bind("<Return>", lambda _e, n=name: actor._on_header_commit(n))
        hdr.columnconfigure(1, weight=1)

        # One hour of the table plus its heart rate readings
        hour = ttk.Frame(nb, padding=8)
        nb.add(hour, text="Hour")
        owner.var_hour = tk.IntVar(value=1)
        top = ttk.Frame(hour)
        top.grid(row=0, column=0, columnspan=3, sticky="w", pady=(0, 6))
        ttk.Label(top, text="Hour:").pack(side="left")
        ttk.Spinbox(
            top, from_=1, to=NUM_COLUMNS, textvariable=owner.var_hour, width=4,
            command=actor._sync_hour, state="readonly",
        ).pack(side="left", padx=(6, 0))

        owner.table_vars = {}
        for row, name in enumerate(TABLE_FIELDS, start=1):
            var = tk.StringVar(value="")
            owner.table_vars[name] = var
            ttk.Label(hour, text=TABLE_LABELS[name]).grid(row=row, column=0, sticky="w", pady=1)
            ent = ttk.Entry(hour, textvariable=var, width=24)
            ent.grid(row=row, column=1, columnspan=2, sticky="ew", padx=(6, 0), pady=1)
            ent.bind("<FocusOut>", lambda _e, n=name: actor._on_table_commit(n))
            ent.bind("<Return>", lambda _e, n=name: actor._on_table_commit(n))

        base = len(TABLE_FIELDS) + 1
        ttk.Separator(hour, orient="horizontal").grid(row=base, column=0, columnspan=3, sticky="ew", pady=8)
        ttk.Label(hour, text="Heart rate (bpm)").grid(row=base + 1, column=1, sticky="w")
        ttk.Label(hour, text="Minute").grid(row=base + 1, column=2, sticky="w")
        owner.reading_vars = []
        for i in range(HEART_RATE_READINGS_PER_HOUR):
            bpm, minute = tk.StringVar(value=""), tk.StringVar(value="")
            owner.reading_vars.append((bpm, minute))
            ttk.Label(hour, text=f"#{i + 1}").grid(row=base + 2 + i, column=0, sticky="w")
            ttk.Entry(hour, textvariable=bpm, width=8).grid(row=base + 2 + i, column=1, sticky="w", padx=(6, 0))
            ttk.Entry(hour, textvariable=minute, width=6).grid(row=base + 2 + i, column=2, sticky="w")
        ttk.Button(hour, text="Apply readings", command=actor._apply_readings).grid(
            row=base + 2 + HEART_RATE_READINGS_PER_HOUR, column=1, sticky="w", pady=(6, 0)
        )
        hour.columnconfigure(1, weight=1)

        # Observations
        obs = ttk.Frame(nb, padding=8)
        nb.add(obs, text="Observations")
        owner.obs_text = tk.Text(obs, wrap="word", height=12, undo=True)
        owner.obs_text.pack(fill="both", expand=True)
        owner.obs_text.bind("<FocusOut>", lambda _e: actor._on_observations_commit())


class TableActor:
    def __init__(self, owner) -> None:
        object.__setattr__(self, "owner", owner)

    def __getattr__(self, name):
        return getattr(self.owner, name)

    def __setattr__(self, name, value) -> None:
        if name == "owner":
            object.__setattr__(self, name, value)
            return
        setattr(self.owner, name, value)

    def _hour_index(self) -> int:
        try:
            return min(NUM_COLUMNS, max(1, int(self.var_hour.get()))) - 1
        except (tk.TclError, ValueError):
            return 0

    def _sync_from_document(self) -> None:
        header = self.session.document.header
        for name, var in self.header_vars.items():
            var.set(getattr(header, name))
        self.obs_text.delete("1.0", "end")
        self.obs_text.insert("1.0", self.session.document.observations)
        self._sync_hour()

    def _sync_hour(self) -> None:
        col = self.session.document.table_data[self._hour_index()]
        for name, var in self.table_vars.items():
            var.set(getattr(col, name))
        readings = self.session.heart_rate_readings(self._hour_index())
        for i, (bpm_var, minute_var) in enumerate(self.reading_vars):
            if i < len(readings):
                bpm, minute = readings[i]
                bpm_var.set(f"{bpm:g}")
                minute_var.set(str(minute))
            else:
                bpm_var.set("")
                minute_var.set("")

    # ---------- commits ----------

    def _on_header_commit(self, name: str) -> None:
        var = self.header_vars[name]
        if var.get().upper() == getattr(self.session.document.header, name):
            return
        self.session.update_header(name, var.get())
        if name == "blood_type":
            self.session.format_blood_type()
        var.set(getattr(self.session.document.header, name))
        self._on_document_changed()

    def _on_table_commit(self, name: str) -> None:
        idx = self._hour_index()
        var = self.table_vars[name]
        if var.get().upper() == getattr(self.session.document.table_data[idx], name):
            return
        self.session.update_table(idx, name, var.get())
        var.set(getattr(self.session.document.table_data[idx], name))
        self._on_document_changed()

    def _on_observations_commit(self) -> None:
        text = self.obs_text.get("1.0", "end-1c")
        if text.upper() == self.session.document.observations:
            return
        self.session.set_observations(text)
        self.obs_text.delete("1.0", "end")
        self.obs_text.insert("1.0", self.session.document.observations)
        self._on_document_changed()

    def _parse_readings(self) -> List[Tuple[float, float]]:
        out: List[Tuple[float, float]] = []
        for i, (bpm_var, minute_var) in enumerate(self.reading_vars, start=1):
            bpm_s, minute_s = bpm_var.get().strip(), minute_var.get().strip()
            if not bpm_s:
                continue
            try:
                out.append((float(bpm_s), float(minute_s or 0)))
            except ValueError:
                raise ValueError(f"Reading #{i}: '{bpm_s}' / '{minute_s}' is not a number.") from None
        return out

    def _apply_readings(self) -> None:
        try:
            readings = self._parse_readings()
        except ValueError as e:
            self._show_error("Heart rate", str(e))
            return
        results = self.session.set_heart_rate_readings(self._hour_index(), readings)
        rejected = [r.value for r in results if not r.accepted]
        self._sync_hour()
        self._on_document_changed()
        if rejected:
            self._show_info("Heart rate", "Outside 80-180 bpm, not recorded: " + ", ".join(f"{v:g}" for v in rejected))

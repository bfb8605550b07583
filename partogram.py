from __future__ import annotations

import logging
import tkinter as tk
from pathlib import Path
from tkinter import ttk, messagebox, filedialog
from typing import Optional

from PIL import Image

from partogram_canvas.config import AppSettings, CONFIG_PATH, load_config, save_config
from partogram_canvas.sheet import load_background
from partogram_canvas.store import PatientRecord, PatientRecordStore, StoreError
from partogram_canvas.ui_window import PartogramWindow

logger = logging.getLogger("partogram")


# -----------------------------
# Patient admission dialog
# -----------------------------

class PatientDialog(tk.Toplevel):
    FIELDS = [
        ("Name", "name"),
        ("Bed", "bed"),
        ("Age", "age"),
        ("GA weeks", "gestational_age_weeks"),
        ("GA days", "gestational_age_days"),
        ("Parity", "parity"),
        ("Blood type", "blood_type"),
        ("Baby name", "baby_name"),
        ("Record number", "medical_record_number"),
    ]
    INT_FIELDS = ("age", "gestational_age_weeks", "gestational_age_days")

    def __init__(self, parent: tk.Tk):
        super().__init__(parent)
        self.title("New patient")
        self.resizable(False, False)
        self.transient(parent)
        self.grab_set()

        self._result: Optional[PatientRecord] = None
        self.vars = {attr: tk.StringVar(value="") for _, attr in self.FIELDS}
        self._build()

    def _build(self):
        pad = {"padx": 10, "pady": 4}
        frm = ttk.Frame(self)
        frm.pack(fill="both", expand=True, padx=10, pady=10)
        for r, (label, attr) in enumerate(self.FIELDS):
            ttk.Label(frm, text=f"{label}:").grid(row=r, column=0, sticky="w", **pad)
            ttk.Entry(frm, textvariable=self.vars[attr], width=32).grid(row=r, column=1, sticky="ew", **pad)

        btns = ttk.Frame(self)
        btns.pack(fill="x", padx=10, pady=(0, 10))
        ttk.Button(btns, text="Add", command=self._apply_and_close).pack(side="right")
        ttk.Button(btns, text="Cancel", command=self._cancel).pack(side="right", padx=(0, 8))
        self.bind("<Return>", lambda _e: self._apply_and_close())
        self.bind("<Escape>", lambda _e: self._cancel())

    def _apply_and_close(self):
        values = {attr: var.get().strip() for attr, var in self.vars.items()}
        if not values["name"]:
            messagebox.showerror("Invalid patient", "Name is required.", parent=self)
            return
        try:
            for attr in self.INT_FIELDS:
                values[attr] = int(values[attr]) if values[attr] else None
        except ValueError:
            messagebox.showerror("Invalid patient", "Age and gestational age must be whole numbers.", parent=self)
            return
        self._result = PatientRecord(id="", **values)
        self.destroy()

    def _cancel(self):
        self._result = None
        self.destroy()

    def result(self) -> Optional[PatientRecord]:
        return self._result


# -----------------------------
# Main App
# -----------------------------

class PartogramApp(tk.Tk):
    def __init__(self, settings: Optional[AppSettings] = None):
        super().__init__()
        self.title("Partogram")
        self.geometry("760x480")

        self.settings = settings or load_config()
        self.store = PatientRecordStore(self.settings.store_path)
        self._background: Optional[Image.Image] = None
        self._load_background()

        self._build_ui()
        self.refresh_patients()

    def _build_ui(self):
        toolbar = ttk.Frame(self, padding=(8, 8, 8, 4))
        toolbar.pack(side="top", fill="x")

        ttk.Button(toolbar, text="Open partogram", command=self.open_selected).pack(side="left")
        ttk.Button(toolbar, text="New patient…", command=self.add_patient).pack(side="left", padx=(8, 0))
        ttk.Button(toolbar, text="Sheet background…", command=self.choose_background).pack(side="left", padx=(8, 0))
        ttk.Button(toolbar, text="Refresh", command=self.refresh_patients).pack(side="left", padx=(8, 0))

        self.status_var = tk.StringVar(value="Ready.")
        ttk.Label(toolbar, textvariable=self.status_var).pack(side="right")

        body = ttk.Frame(self, padding=(8, 4, 8, 8))
        body.pack(side="top", fill="both", expand=True)

        self.tree = ttk.Treeview(body, columns=("bed", "name", "record", "partogram"), show="headings")
        for col, label, width in [
            ("bed", "Bed", 60),
            ("name", "Name", 280),
            ("record", "Record", 120),
            ("partogram", "Partogram", 100),
        ]:
            self.tree.heading(col, text=label)
            self.tree.column(col, width=width, anchor="w")
        self.tree.pack(side="left", fill="both", expand=True)
        self.tree.bind("<Double-1>", lambda _e: self.open_selected())

        yscroll = ttk.Scrollbar(body, orient="vertical", command=self.tree.yview)
        yscroll.pack(side="right", fill="y")
        self.tree.configure(yscrollcommand=yscroll.set)

        footer = ttk.Frame(self, padding=(8, 0, 8, 8))
        footer.pack(side="bottom", fill="x")
        ttk.Label(footer, text=f"Records: {self.store.path}   Settings: {CONFIG_PATH}").pack(side="left")

    def set_status(self, s: str):
        self.status_var.set(s)

    def _load_background(self):
        path = self.settings.background_image
        if not path:
            self._background = None
            return
        try:
            self._background = load_background(path)
        except OSError as e:
            logger.warning("could not load sheet background %s: %s", path, e)
            self._background = None
            messagebox.showerror("Sheet background", f"Could not load {path}:\n{e}")

    def refresh_patients(self):
        self.tree.delete(*self.tree.get_children())
        try:
            patients = self.store.list_patients()
        except StoreError as e:
            messagebox.showerror("Patient records", str(e))
            return
        for p in patients:
            self.tree.insert(
                "", "end", iid=p.id,
                values=(p.bed, p.name, p.medical_record_number, "yes" if p.partogram_data else ""),
            )
        self.set_status(f"{len(patients)} patients")

    def add_patient(self):
        dlg = PatientDialog(self)
        self.wait_window(dlg)
        record = dlg.result()
        if record is None:
            return
        try:
            self.store.add_patient(record)
        except StoreError as e:
            messagebox.showerror("Save failed", str(e))
            return
        self.refresh_patients()
        self.tree.selection_set(record.id)

    def open_selected(self):
        sel = self.tree.selection()
        if not sel:
            messagebox.showinfo("Partogram", "Select a patient first.")
            return
        try:
            PartogramWindow(
                self,
                store=self.store,
                patient_id=sel[0],
                background=self._background,
                default_tool=self.settings.default_tool,
                fit_sheet=self.settings.fit_sheet,
                on_saved=lambda _pid: self.refresh_patients(),
            )
        except (StoreError, ValueError) as e:
            logger.exception("could not open partogram for %s", sel[0])
            messagebox.showerror("Partogram", str(e))

    def choose_background(self):
        path = filedialog.askopenfilename(
            title="Scanned partogram sheet",
            filetypes=[("Images", "*.png *.jpg *.jpeg *.tif *.tiff"), ("All files", "*.*")],
        )
        if not path:
            return
        self.settings.background_image = str(Path(path))
        self._load_background()
        try:
            save_config(self.settings)
            self.set_status(f"Settings saved to {CONFIG_PATH.name}")
        except OSError as e:
            messagebox.showerror("Save failed", str(e))


def main():
    settings = load_config()
    logging.basicConfig(
        level=getattr(logging, str(settings.log_level).upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    app = PartogramApp(settings)
    app.mainloop()


if __name__ == "__main__":
    main()

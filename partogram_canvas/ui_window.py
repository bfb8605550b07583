from __future__ import annotations

import logging
import platform
import tkinter as tk
from tkinter import ttk, messagebox, filedialog
from typing import Callable, Optional

from PIL import Image

from .serialization import load_document, save_document
from .session import PartogramSession, Tool
from .sheet import draw_grid_sheet, export_sheet
from .store import PatientRecordStore, StoreError
from .ui_menus import MenuActor
from .ui_panel_canvas import CanvasPanel, CanvasActor
from .ui_panel_table import TablePanel, TableActor
from .ui_panel_toolbar import ToolbarPanel

logger = logging.getLogger(__name__)


class PartogramWindow(tk.Toplevel):
    def __init__(
        self,
        parent: tk.Tk,
        *,
        store: PatientRecordStore,
        patient_id: str,
        background: Optional[Image.Image] = None,
        default_tool: str = "dilation",
        fit_sheet: bool = True,
        on_saved: Optional[Callable[[str], None]] = None,
    ):
        # Loaded before the Toplevel exists; errors reach the caller with no window shown.
        patient = store.get_patient(patient_id)
        session = PartogramSession(load_document(patient), tool=Tool(default_tool))

        super().__init__(parent)
        self.geometry("1280x900")
        self.resizable(True, True)
        if platform.system().lower() != "windows":
            self.transient(parent)  # modeless: no grab_set
        self._store = store
        self._patient_id = patient_id
        self._on_saved = on_saved

        self.title(f"Partogram - {patient.name or patient_id}")
        self.session = session
        self._background = background
        self._pil = background if background is not None else draw_grid_sheet(self.session.geometry)
        self._photo = None

        # Tool mode
        self.tool_mode = tk.StringVar(value=self.session.tool.value)
        self.contraction_brush = tk.StringVar(value=self.session.contraction_brush.value)
        self.var_fit_image = tk.BooleanVar(value=fit_sheet)
        self.status_var = tk.StringVar(value="")

        self.canvas_actor = CanvasActor(self)
        self.menu_actor = MenuActor(self)
        self.table_actor = TableActor(self)

        self._build_ui()
        self.protocol("WM_DELETE_WINDOW", self._on_close)
        self.table_actor._sync_from_document()
        self.canvas_actor._update_tip()
        self._update_status()

    # ---------- UI ----------
    def _build_ui(self):
        root = ttk.Frame(self, padding=8)
        root.pack(fill="both", expand=True)

        self.toolbar_panel = ToolbarPanel(
            self,
            root,
            on_tool_change=self._on_tool_change,
            on_brush_change=self._on_brush_change,
            on_alert_line=self._on_alert_line,
            on_clear=self._on_clear_all,
            on_save=self._save,
            on_export=self._export,
        )

        self._panes = ttk.Panedwindow(root, orient="horizontal")
        self._panes.pack(fill="both", expand=True, pady=(8, 0))
        left = ttk.Frame(self._panes)
        right = ttk.Frame(self._panes, width=360)
        self._panes.add(left, weight=3)
        self._panes.add(right, weight=1)

        self.canvas_panel = CanvasPanel(self, left, actor=self.canvas_actor)
        self.table_panel = TablePanel(self, right, actor=self.table_actor)

    # ---------- toolbar ----------
    def _on_tool_change(self):
        self.session.set_tool(self.tool_mode.get())
        self.canvas_actor._update_tip()

    def _on_brush_change(self):
        self.session.set_contraction_brush(self.contraction_brush.get())
        self.tool_mode.set(self.session.tool.value)
        self.canvas_actor._update_tip()

    def _on_alert_line(self):
        result = self.session.set_active_phase_from_first_dilation()
        if not result.accepted:
            self._show_info("Alert line", "Record a dilation point first.")
            return
        self._on_document_changed()

    def _on_clear_all(self):
        if not messagebox.askyesno("Clear all", "Remove every point and contraction?", parent=self):
            return
        self.session.clear_all()
        self._on_document_changed()

    def _on_fit_toggle(self):
        self.canvas_actor._render_image()

    # ---------- persistence ----------
    def _save(self) -> bool:
        # Pending entry edits are committed on focus-out; force it before saving.
        self.focus_set()
        self.update_idletasks()
        try:
            save_document(self._store, self._patient_id, self.session.document)
        except StoreError as e:
            self._show_error("Save failed", str(e))
            return False
        self.session.dirty = False
        self._update_status()
        if self._on_saved is not None:
            self._on_saved(self._patient_id)
        return True

    def _export(self):
        path = filedialog.asksaveasfilename(
            parent=self,
            defaultextension=".png",
            filetypes=[("PNG image", "*.png"), ("PDF document", "*.pdf"), ("All files", "*.*")],
        )
        if not path:
            return
        try:
            export_sheet(self.session.document, path, background=self._background, geometry=self.session.geometry)
        except (OSError, ValueError) as e:
            logger.exception("sheet export failed")
            self._show_error("Export failed", str(e))
            return
        self._show_info("Export", f"Saved:\n{path}")

    def _on_close(self):
        if self.session.dirty:
            answer = messagebox.askyesnocancel("Partogram", "Save changes before closing?", parent=self)
            if answer is None:
                return
            if answer and not self._save():
                return
        self.destroy()

    # ---------- refresh ----------
    def _on_document_changed(self):
        self.canvas_actor._redraw_overlay()
        self.table_actor._sync_hour()
        self._update_status()

    def _update_status(self):
        self.status_var.set("Unsaved changes" if self.session.dirty else "Saved")

    def _show_info(self, title: str, message: str) -> None:
        messagebox.showinfo(title, message, parent=self)

    def _show_error(self, title: str, message: str) -> None:
        messagebox.showerror(title, message, parent=self)

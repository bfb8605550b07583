from __future__ import annotations

import logging
import tkinter as tk
from tkinter import ttk
from typing import Iterable, Tuple

from PIL import Image, ImageTk

from .renderer import Circle, Polygon, Polyline, Rect, Shape, Text, VarietyMarker, variety_glyph
from .session import ClickResult

logger = logging.getLogger(__name__)

# Tk canvas anchors for the renderer's anchor names
_ANCHORS = {"center": "center", "w": "w", "nw": "nw"}


class CanvasPanel:
    def __init__(self, owner, parent: tk.Widget, *, actor) -> None:
        self.owner = owner
        self.actor = actor

        frame = ttk.Frame(parent)
        self.frame = frame
        frame.pack(side="top", fill="both", expand=True)

        opts = ttk.Frame(frame)
        opts.pack(side="top", fill="x", pady=(8, 0))
        ttk.Checkbutton(
            opts,
            text="Fit",
            variable=owner.var_fit_image,
            command=owner._on_fit_toggle,
        ).pack(side="left")
        owner.tip_var = tk.StringVar(value="")
        ttk.Label(opts, textvariable=owner.tip_var, wraplength=700, justify="left").pack(
            side="left", padx=(10, 0), fill="x", expand=True
        )

        owner.canvas = tk.Canvas(frame, background="#777", highlightthickness=1, highlightbackground="#333")
        owner.canvas.configure(takefocus=1)
        owner.canvas.pack(side="bottom", fill="both", expand=True, pady=(8, 0))
        owner.canvas.bind("<Configure>", actor._on_canvas_configure)
        owner.canvas.bind("<Button-1>", actor._on_click)
        owner.canvas.bind("<Escape>", actor._on_escape)


class CanvasActor:
    def __init__(self, owner) -> None:
        object.__setattr__(self, "owner", owner)

    def __getattr__(self, name):
        return getattr(self.owner, name)

    def __setattr__(self, name, value) -> None:
        if name == "owner":
            object.__setattr__(self, name, value)
            return
        setattr(self.owner, name, value)

    def _on_canvas_configure(self, _evt=None):
        # Avoid thrashing when resizing: schedule a single re-render
        if getattr(self, "_render_after_id", None) is not None:
            self.after_cancel(self._render_after_id)
        self._render_after_id = self.after(30, self._render_image)

    def _render_image(self):
        self._render_after_id = None
        self.canvas.delete("all")
        self.canvas.update_idletasks()
        cw = max(10, self.canvas.winfo_width())
        ch = max(10, self.canvas.winfo_height())

        iw, ih = self._pil.size
        sx = cw / iw
        sy = ch / ih
        if self.var_fit_image.get():
            self._scale = min(sx, sy)
        else:
            self._scale = min(1.0, sx, sy)
        self._disp_w = max(1, int(iw * self._scale))
        self._disp_h = max(1, int(ih * self._scale))

        self._offx = (cw - self._disp_w) // 2
        self._offy = (ch - self._disp_h) // 2

        disp = self._pil.resize((self._disp_w, self._disp_h), Image.Resampling.LANCZOS)
        self._photo = ImageTk.PhotoImage(disp)
        self.canvas.create_image(self._offx, self._offy, image=self._photo, anchor="nw", tags=("img",))

        self._redraw_overlay()

    # ---------- coordinates ----------

    def _to_canvas(self, vx: float, vy: float) -> Tuple[float, float]:
        """Sheet (visual) space -> widget pixels."""
        sx, sy = self.session.geometry.canvas_to_screen(vx, vy, self._disp_w, self._disp_h)
        return self._offx + sx, self._offy + sy

    def _flat(self, pts: Iterable[Tuple[float, float]]):
        out = []
        for vx, vy in pts:
            out.extend(self._to_canvas(vx, vy))
        return out

    # ---------- overlay ----------

    def _redraw_overlay(self):
        self.canvas.delete("overlay")
        if getattr(self, "_photo", None) is None:
            return
        self._draw_shapes(self.session.shapes())

    def _draw_shapes(self, shapes: Iterable[Shape]) -> None:
        s = self._disp_w / self.session.geometry.canvas_w
        for shp in shapes:
            tags = ("overlay", shp.role or "shape")
            if isinstance(shp, VarietyMarker):
                self._draw_shapes(variety_glyph(shp))
            elif isinstance(shp, Polyline):
                self.canvas.create_line(
                    *self._flat(shp.points), fill=shp.fill, width=max(1.0, shp.width * s),
                    capstyle="round", joinstyle="round", tags=tags,
                )
            elif isinstance(shp, Polygon):
                self.canvas.create_polygon(
                    *self._flat(shp.points), fill=shp.fill, outline=shp.outline or "",
                    width=shp.width * s, tags=tags,
                )
            elif isinstance(shp, Circle):
                cx, cy = self._to_canvas(shp.cx, shp.cy)
                r = shp.r * s
                self.canvas.create_oval(
                    cx - r, cy - r, cx + r, cy + r, fill=shp.fill or "", outline=shp.outline or "",
                    width=max(1.0, shp.width * s) if shp.outline else 0, tags=tags,
                )
            elif isinstance(shp, Rect):
                x0, y0 = self._to_canvas(shp.x0, shp.y0)
                x1, y1 = self._to_canvas(shp.x1, shp.y1)
                self.canvas.create_rectangle(
                    x0, y0, x1, y1, fill=shp.fill or "", outline=shp.outline or "",
                    width=max(1.0, shp.width * s), tags=tags,
                )
            elif isinstance(shp, Text):
                x, y = self._to_canvas(shp.x, shp.y)
                self.canvas.create_text(
                    x, y, text=shp.text, anchor=_ANCHORS.get(shp.anchor, "center"), angle=shp.angle,
                    font=("TkDefaultFont", -max(6, int(shp.size * s))), fill="black", tags=tags,
                )

    # ---------- input ----------

    def _on_click(self, event):
        self.canvas.focus_set()
        if self.session.has_open_menu:
            return
        sx = event.x - self._offx
        sy = event.y - self._offy
        if not (0 <= sx <= self._disp_w and 0 <= sy <= self._disp_h):
            return
        result = self.session.click_screen(sx, sy, self._disp_w, self._disp_h)
        logger.debug("click (%d, %d) tool=%s -> %s", sx, sy, self.session.tool.value, result.value)
        if result == ClickResult.MENU_OPENED:
            self.tool_mode.set(self.session.tool.value)
            self.menu_actor._open_menu()
        elif result == ClickResult.MUTATED:
            self._on_document_changed()
        elif result == ClickResult.REJECTED:
            self.status_var.set("Value outside the chart range.")

    def _on_escape(self, _evt=None):
        self.session.cancel()
        self._update_tip()

    def _update_tip(self):
        tips = {
            "dilation": "Click the dilation band to record cervical dilation for that hour.",
            "station": "Click the dilation band to record the fetal head station (De Lee).",
            "heart_rate": "Click the heart rate band; values snap to 5 bpm and quarter hours.",
            "contraction": "Click the contraction band to set the contractions per 10 minutes for that hour.",
            "eraser": "Click a marker, heart rate reading or contraction block to remove it.",
        }
        self.tip_var.set(tips.get(self.tool_mode.get(), ""))

from __future__ import annotations

import tkinter as tk
from tkinter import ttk
from typing import Optional

from .algorithms import MAX_CONTRACTION_SLOTS, STATION_VALUES
from .data_model import ROTATIONS, VARIETIES
from .session import ContractionMenu, DilationMenu, StationMenu


class MenuActor:
    """Modal confirmation menus for the session's open menu."""

    def __init__(self, owner) -> None:
        object.__setattr__(self, "owner", owner)

    def __getattr__(self, name):
        return getattr(self.owner, name)

    def __setattr__(self, name, value) -> None:
        if name == "owner":
            object.__setattr__(self, name, value)
            return
        setattr(self.owner, name, value)

    def _open_menu(self) -> None:
        menu = self.session.menu
        if isinstance(menu, DilationMenu):
            self._dilation_menu(menu)
        elif isinstance(menu, StationMenu):
            self._station_menu(menu)
        elif isinstance(menu, ContractionMenu):
            self._contraction_menu(menu)

    def _new_dialog(self, title: str) -> tk.Toplevel:
        dlg = tk.Toplevel(self)
        dlg.title(title)
        dlg.transient(self)
        dlg.grab_set()
        dlg.protocol("WM_DELETE_WINDOW", lambda: self._close_menu(dlg, cancel=True))
        dlg.bind("<Escape>", lambda _e: self._close_menu(dlg, cancel=True))
        return dlg

    def _close_menu(self, dlg: tk.Toplevel, *, cancel: bool) -> None:
        if cancel:
            self.session.cancel()
        dlg.destroy()
        self._on_document_changed()

    # ---------- dilation ----------

    def _dilation_menu(self, menu: DilationMenu) -> None:
        dlg = self._new_dialog(f"Dilation, hour {menu.hour_index + 1}")
        ttk.Label(dlg, text="Cervical dilation (cm):").pack(anchor="w", padx=12, pady=(12, 6))

        grid = ttk.Frame(dlg)
        grid.pack(padx=12)

        def _pick(value: Optional[int]) -> None:
            self.session.confirm_dilation(value)
            self._close_menu(dlg, cancel=False)

        for v in range(11):
            b = ttk.Button(grid, text=str(v), width=4, command=lambda v=v: _pick(v))
            b.grid(row=v // 6, column=v % 6, padx=2, pady=2)
            if v == menu.seed:
                b.focus_set()

        btns = ttk.Frame(dlg)
        btns.pack(fill="x", padx=12, pady=12)
        ttk.Button(btns, text="Remove", command=lambda: _pick(None)).pack(side="left")
        ttk.Button(btns, text="Cancel", command=lambda: self._close_menu(dlg, cancel=True)).pack(side="right")
        dlg.wait_window(dlg)

    # ---------- station ----------

    def _station_menu(self, menu: StationMenu) -> None:
        dlg = self._new_dialog(f"Station, hour {menu.hour_index + 1}")

        var_station = tk.IntVar(value=menu.seed)
        var_variety = tk.StringVar(value=menu.variety or "")
        var_rotation = tk.StringVar(value=str(menu.rotation))

        frm = ttk.Frame(dlg, padding=12)
        frm.pack(fill="both", expand=True)

        ttk.Label(frm, text="De Lee plane:").grid(row=0, column=0, sticky="w")
        planes = ttk.Frame(frm)
        planes.grid(row=0, column=1, sticky="w", pady=(0, 6))
        for i, v in enumerate(STATION_VALUES):
            ttk.Radiobutton(planes, text=f"{v:+d}" if v else "0", value=v, variable=var_station).grid(
                row=0, column=i, padx=2
            )

        ttk.Label(frm, text="Variety:").grid(row=1, column=0, sticky="w")
        variety_combo = ttk.Combobox(
            frm,
            textvariable=var_variety,
            state="readonly",
            width=22,
            values=[""] + list(VARIETIES.keys()),
        )
        variety_combo.grid(row=1, column=1, sticky="w", pady=2)
        desc = tk.StringVar(value=VARIETIES.get(var_variety.get(), ""))
        ttk.Label(frm, textvariable=desc).grid(row=1, column=2, sticky="w", padx=(6, 0))
        variety_combo.bind("<<ComboboxSelected>>", lambda _e: desc.set(VARIETIES.get(var_variety.get(), "")))

        ttk.Label(frm, text="Rotation:").grid(row=2, column=0, sticky="w")
        ttk.Combobox(
            frm,
            textvariable=var_rotation,
            state="readonly",
            width=6,
            values=[str(r) for r in ROTATIONS],
        ).grid(row=2, column=1, sticky="w", pady=2)

        def _on_ok() -> None:
            self.session.confirm_station(var_station.get(), var_variety.get() or None, int(var_rotation.get()))
            self._close_menu(dlg, cancel=False)

        def _on_remove() -> None:
            self.session.confirm_station(None)
            self._close_menu(dlg, cancel=False)

        btns = ttk.Frame(dlg)
        btns.pack(fill="x", padx=12, pady=(0, 12))
        ttk.Button(btns, text="Remove", command=_on_remove).pack(side="left")
        ttk.Button(btns, text="OK", command=_on_ok).pack(side="right")
        ttk.Button(btns, text="Cancel", command=lambda: self._close_menu(dlg, cancel=True)).pack(
            side="right", padx=(0, 8)
        )
        dlg.bind("<Return>", lambda _e: _on_ok())
        dlg.wait_window(dlg)

    # ---------- contractions ----------

    def _contraction_menu(self, menu: ContractionMenu) -> None:
        dlg = self._new_dialog(f"Contractions, hour {menu.hour_index + 1}")
        ttk.Label(dlg, text=f"Contractions in 10 minutes (max {MAX_CONTRACTION_SLOTS}):").pack(
            anchor="w", padx=12, pady=(12, 6)
        )

        frm = ttk.Frame(dlg)
        frm.pack(fill="x", padx=12)
        counts = {}
        for row, (label, key, value) in enumerate([
            ("Strong (> 40 s)", "strong", menu.strong),
            ("Moderate (20-40 s)", "moderate", menu.moderate),
            ("Weak (< 20 s)", "weak", menu.weak),
        ]):
            var = tk.IntVar(value=value)
            counts[key] = var
            ttk.Label(frm, text=label).grid(row=row, column=0, sticky="w")
            ttk.Spinbox(frm, from_=0, to=MAX_CONTRACTION_SLOTS, textvariable=var, width=4).grid(
                row=row, column=1, padx=(8, 0), pady=2
            )

        def _on_ok() -> None:
            try:
                values = {k: int(v.get()) for k, v in counts.items()}
            except (tk.TclError, ValueError):
                self._show_error("Contractions", "Counts must be whole numbers.")
                return
            packed = self.session.confirm_contractions(values["weak"], values["moderate"], values["strong"])
            self._close_menu(dlg, cancel=False)
            if packed is not None and packed.total_dropped:
                self._show_info(
                    "Contractions",
                    f"Only {MAX_CONTRACTION_SLOTS} contractions fit in one hour; "
                    f"{packed.total_dropped} were not recorded.",
                )

        btns = ttk.Frame(dlg)
        btns.pack(fill="x", padx=12, pady=12)
        ttk.Button(btns, text="OK", command=_on_ok).pack(side="right")
        ttk.Button(btns, text="Cancel", command=lambda: self._close_menu(dlg, cancel=True)).pack(
            side="right", padx=(0, 8)
        )
        dlg.bind("<Return>", lambda _e: _on_ok())
        dlg.wait_window(dlg)

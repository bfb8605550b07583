from __future__ import annotations

from dataclasses import dataclass
from typing import Tuple

from .data_model import NUM_COLUMNS


@dataclass(frozen=True)
class ChartGeometry:
    """
    Fixed geometry of the partogram sheet.

    Three coordinate spaces are involved:

      screen   -> pixels of the rendered widget (any size)
      visual   -> fixed canvas space of the background sheet (canvas_w x canvas_h)
      internal -> logical space of the sheet's main drawing group; all band and
                  grid constants below are expressed here

        visual = internal * scale + translation

    Every method is plain arithmetic, so scalars and numpy arrays both work.
    """

    # background sheet (A4 at 300 dpi)
    canvas_w: float = 2481.0
    canvas_h: float = 3508.0

    # main group transform
    scale: float = 1.04175
    trans_x: float = -50.052284
    trans_y: float = -610.189202

    # hour grid
    grid_x_start: float = 524.925
    grid_x_end: float = 1805.482
    column_width: float = 80.0348
    num_columns: int = NUM_COLUMNS

    # dilation / station band: 10 cm at the top, 0 cm at the bottom
    dilation_top: float = 1211.165
    dilation_bottom: float = 1804.416
    dilation_max: float = 10.0

    # fetal heart rate band: 180 bpm at the top, 80 bpm at the bottom
    heart_rate_top: float = 2036.406
    heart_rate_bottom: float = 2625.733
    heart_rate_max: float = 180.0
    heart_rate_min: float = 80.0

    # contraction band, stacked bottom-up
    contraction_top: float = 2711.777
    contraction_bottom: float = 2994.665
    contraction_rows: int = 5

    # time rows under the dilation graph
    time_real_top: float = 1888.829
    time_register_top: float = 1947.884
    time_row_height: float = 59.055

    @property
    def canvas_size(self) -> Tuple[float, float]:
        return (self.canvas_w, self.canvas_h)

    @property
    def dilation_height(self) -> float:
        return self.dilation_bottom - self.dilation_top

    @property
    def dilation_unit_height(self) -> float:
        return self.dilation_height / self.dilation_max

    @property
    def heart_rate_height(self) -> float:
        return self.heart_rate_bottom - self.heart_rate_top

    @property
    def heart_rate_range(self) -> float:
        return self.heart_rate_max - self.heart_rate_min

    @property
    def contraction_height(self) -> float:
        return self.contraction_bottom - self.contraction_top

    @property
    def contraction_row_height(self) -> float:
        return self.contraction_height / self.contraction_rows

    # ---------- coordinate transforms ----------

    def to_visual(self, x, y):
        return (x * self.scale + self.trans_x, y * self.scale + self.trans_y)

    def to_internal(self, vx, vy):
        return ((vx - self.trans_x) / self.scale, (vy - self.trans_y) / self.scale)

    def screen_to_canvas(self, sx, sy, rendered_w: float, rendered_h: float):
        """Rescale a pointer position on the rendered widget into fixed canvas space."""
        if rendered_w <= 0 or rendered_h <= 0:
            raise ValueError("Rendered size must be positive.")
        return (sx * (self.canvas_w / rendered_w), sy * (self.canvas_h / rendered_h))

    def canvas_to_screen(self, vx, vy, rendered_w: float, rendered_h: float):
        if rendered_w <= 0 or rendered_h <= 0:
            raise ValueError("Rendered size must be positive.")
        return (vx * (rendered_w / self.canvas_w), vy * (rendered_h / self.canvas_h))

    def screen_to_internal(self, sx, sy, rendered_w: float, rendered_h: float):
        vx, vy = self.screen_to_canvas(sx, sy, rendered_w, rendered_h)
        return self.to_internal(vx, vy)

    # ---------- chart values -> internal positions ----------

    def column_left(self, x):
        return self.grid_x_start + x * self.column_width

    def column_center(self, x):
        return self.column_left(x) + self.column_width / 2

    def dilation_to_y(self, value):
        ratio = (self.dilation_max - value) / self.dilation_max
        return self.dilation_top + ratio * self.dilation_height

    def heart_rate_to_y(self, bpm):
        ratio = (self.heart_rate_max - bpm) / self.heart_rate_range
        return self.heart_rate_top + ratio * self.heart_rate_height

    def contraction_slot_top(self, slot):
        return self.contraction_bottom - (slot + 1) * self.contraction_row_height


DEFAULT_GEOMETRY = ChartGeometry()

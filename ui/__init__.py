"""UI: colour mapping and drawing of the simulation output buffer."""

from ui.grid_view import draw_field
from ui.colors import field_to_rgb, PALETTES

__all__ = ["draw_field", "field_to_rgb", "PALETTES"]

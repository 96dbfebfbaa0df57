"""Simulation view: colour-mapped U field scaled into a rect with a thin grey border."""

import pygame
import numpy as np

from ui.colors import field_to_rgb

BORDER_COLOR = (80, 80, 80)
BORDER_PX = 1


def rgb_to_surface(rgb: np.ndarray) -> pygame.Surface:
    """(H, W, 3) uint8 → pygame Surface of size (W, H)."""
    H, W = rgb.shape[0], rgb.shape[1]
    data = np.ascontiguousarray(rgb).tobytes()
    try:
        return pygame.image.fromstring(data, (W, H), "RGB")
    except (TypeError, AttributeError):
        return pygame.image.frombytes(data, (W, H), "RGB")


def draw_field(
    surface: pygame.Surface,
    rect: pygame.Rect,
    frame: np.ndarray,
    width: int,
    height: int,
    palette: str = "ocean",
) -> None:
    """Draw a row-major frame of width*height values into rect."""
    if width == 0 or height == 0:
        return
    img = rgb_to_surface(field_to_rgb(frame, width, height, palette))
    if img.get_size() == rect.size:
        surface.blit(img, rect.topleft)
    else:
        surface.blit(pygame.transform.smoothscale(img, rect.size), rect.topleft)
    pygame.draw.rect(surface, BORDER_COLOR, rect, BORDER_PX)

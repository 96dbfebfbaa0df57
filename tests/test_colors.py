from unittest import TestCase

import numpy as np

from ui.colors import PALETTES, _apply_gradient, field_to_rgb, normalize


class TestColors(TestCase):

    def test_shape_and_dtype(self):
        frame = np.linspace(0, 1, 32 * 16)
        rgb = field_to_rgb(frame, 32, 16)
        self.assertEqual((16, 32, 3), rgb.shape)
        self.assertEqual(np.uint8, rgb.dtype)

    def test_extremes_map_to_end_stops(self):
        frame = np.full(16 * 16, 0.7)
        frame[0], frame[-1] = 0.2, 0.9
        for name, (stops, _) in PALETTES.items():
            rgb = field_to_rgb(frame, 16, 16, name)
            np.testing.assert_array_equal((stops[0] * 255).round(), rgb[0, 0])
            np.testing.assert_array_equal((stops[-1] * 255).round(), rgb[15, 15])

    def test_flat_frame(self):
        np.testing.assert_array_equal(normalize(np.full((4, 4), 0.3)), 1.0)
        rgb = field_to_rgb(np.full(256, 1.0), 16, 16, "bw")
        np.testing.assert_array_equal(rgb, 255)

    def test_gradient_midpoint(self):
        stops = np.array([[0.0, 0.0, 0.0], [1.0, 0.5, 0.0]])
        out = _apply_gradient(np.array([0.0, 0.5, 1.0]), stops, np.array([0.0, 1.0]))
        np.testing.assert_allclose([[0, 0, 0], [0.5, 0.25, 0], [1.0, 0.5, 0]], out)

    def test_unknown_palette(self):
        with self.assertRaises(ValueError):
            field_to_rgb(np.zeros(256), 16, 16, "rainbow")


class TestGridView(TestCase):

    def test_draw_field_into_rect(self):
        import pygame
        from ui.grid_view import BORDER_COLOR, draw_field, rgb_to_surface

        frame = np.linspace(0, 1, 32 * 16)
        img = rgb_to_surface(field_to_rgb(frame, 32, 16, "bw"))
        self.assertEqual((32, 16), img.get_size())
        surface = pygame.Surface((64, 64))
        rect = pygame.Rect(0, 0, 64, 32)
        draw_field(surface, rect, frame, 32, 16, "bw")
        self.assertEqual(BORDER_COLOR, tuple(surface.get_at((0, 0)))[:3])
        self.assertEqual((0, 0, 0), tuple(surface.get_at((32, 48)))[:3])  # outside rect untouched

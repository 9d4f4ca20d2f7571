"""Tests for tone mapping and image export.

Tests cover:
- Averaging, gamma 2 and the [0, 0.999] clamp
- Quantization to [0, 255]
- Raster iteration order
- PPM (P3) text layout and pixel count checks
- PNG export through Pillow
"""

import io

import numpy as np
import pytest


class TestTonemap:
    def test_average_samples(self):
        from pathtracer.preview.tonemap import average_samples

        sums = np.array([[[4.0, 2.0, 0.0], [1.0, 1.0, 1.0]]])
        counts = np.array([[4, 2]])
        np.testing.assert_allclose(
            average_samples(sums, counts), [[[1.0, 0.5, 0.0], [0.5, 0.5, 0.5]]]
        )

    def test_average_rejects_empty_pixels(self):
        from pathtracer.preview.tonemap import average_samples

        with pytest.raises(ValueError, match="no samples"):
            average_samples(np.zeros((1, 1, 3)), np.zeros((1, 1), dtype=np.int32))

    def test_gamma2_is_sqrt(self):
        from pathtracer.preview.tonemap import gamma2

        np.testing.assert_allclose(gamma2(np.array([0.25, 0.0, 1.0])), [0.5, 0.0, 1.0])

    def test_clamp_upper_bound(self):
        from pathtracer.preview.tonemap import DISPLAY_MAX, tonemap

        out = tonemap(np.array([2.0, 0.5, 0.0]), 2)
        np.testing.assert_allclose(out, [DISPLAY_MAX, 0.5, 0.0])

    def test_quantize_range(self):
        from pathtracer.preview.tonemap import quantize

        values = quantize(np.array([0.0, 0.5, 0.999, 1.0, 2.0, -1.0]))
        assert values.dtype == np.uint8
        assert values.tolist() == [0, 128, 255, 255, 255, 0]

    def test_iter_raster_order(self):
        from pathtracer.preview.tonemap import iter_raster

        image = np.arange(2 * 3 * 3).reshape(2, 3, 3)
        order = [(row, col) for row, col, _ in iter_raster(image)]
        assert order == [(0, 0), (0, 1), (0, 2), (1, 0), (1, 1), (1, 2)]


class TestPPMSink:
    def test_header_and_pixels(self):
        from pathtracer.preview.export import PPMSink

        stream = io.StringIO()
        sink = PPMSink(stream)
        sink.begin(2, 1)
        sink.write_pixel(np.array([0.0, 0.5, 0.999]))
        sink.write_pixel(np.array([1.0, 0.25, 0.0]))
        sink.end()

        assert stream.getvalue() == "P3\n2 1\n255\n0 128 255\n255 64 0\n"

    def test_pixel_count_mismatch(self):
        from pathtracer.preview.export import PPMSink

        sink = PPMSink(io.StringIO())
        sink.begin(2, 2)
        sink.write_pixel(np.zeros(3))
        with pytest.raises(RuntimeError, match="expected 4 pixels"):
            sink.end()

    def test_write_ppm_file(self, tmp_path):
        from pathtracer.preview.export import write_ppm

        image = np.zeros((2, 3, 3))
        image[0, 0] = [0.999, 0.999, 0.999]
        path = tmp_path / "out.ppm"
        write_ppm(image, path)

        lines = path.read_text().splitlines()
        assert lines[:3] == ["P3", "3 2", "255"]
        assert len(lines) == 3 + 6
        assert lines[3] == "255 255 255"
        assert all(line == "0 0 0" for line in lines[4:])


class TestPNGExport:
    def test_save_png_from_array(self, tmp_path):
        from PIL import Image

        from pathtracer.preview.export import save_png_from_array

        image = np.zeros((4, 6, 3))
        image[0, :, 0] = 0.999
        path = tmp_path / "out.png"
        save_png_from_array(image, path)

        with Image.open(path) as loaded:
            assert loaded.size == (6, 4)
            pixels = np.asarray(loaded)
        assert pixels[0, 0].tolist() == [255, 0, 0]
        assert pixels[3, 5].tolist() == [0, 0, 0]

    def test_png_sink_matches_array_export(self, tmp_path):
        from PIL import Image

        from pathtracer.preview.export import PNGSink, save_png_from_array
        from pathtracer.preview.tonemap import iter_raster

        rng = np.random.default_rng(0)
        image = rng.random((3, 5, 3))

        sink = PNGSink(tmp_path / "sink.png")
        sink.begin(5, 3)
        for _, _, pixel in iter_raster(image):
            sink.write_pixel(pixel)
        sink.end()
        save_png_from_array(image, tmp_path / "array.png")

        with Image.open(tmp_path / "sink.png") as a, Image.open(tmp_path / "array.png") as b:
            np.testing.assert_array_equal(np.asarray(a), np.asarray(b))

    def test_compute_rmse(self):
        from pathtracer.preview.export import compute_rmse

        a = np.zeros((2, 2, 3))
        b = np.full((2, 2, 3), 0.5)
        assert compute_rmse(a, b) == pytest.approx(0.5)
        with pytest.raises(ValueError, match="shapes must match"):
            compute_rmse(a, np.zeros((3, 2, 3)))

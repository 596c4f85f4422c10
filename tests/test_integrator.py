"""Tests for the path tracing integrator.

This module tests the core path tracing functionality including:
- Render target setup and validation
- Sky gradient for escaping rays
- Bounce budget and absorption
- Material dispatch (Lambertian, Metal)
- Gamma correction and quantization

Note: Imports are done inside test methods to avoid Taichi initialization issues.
The conftest.py fixture initializes Taichi before tests run, so module-level
imports of modules containing ti.field() declarations would fail.
"""

import numpy as np
import pytest
import taichi as ti


class TestRenderTargetSetup:
    """Test render target initialization and management."""

    def test_setup_render_target_sets_dimensions(self):
        from src.pathtracer.core.integrator import get_image_dimensions, setup_render_target

        setup_render_target(64, 48)
        assert get_image_dimensions() == (64, 48)

    @pytest.mark.parametrize("width,height", [(1, 10), (10, 1), (0, 0), (4096, 16), (16, 4096)])
    def test_invalid_dimensions(self, width, height):
        from src.pathtracer.core.integrator import setup_render_target

        with pytest.raises(ValueError):
            setup_render_target(width, height)

    def test_render_without_target_raises(self):
        from src.pathtracer.core.integrator import _render_target_initialized, render_rows

        _render_target_initialized[None] = 0
        with pytest.raises(RuntimeError):
            render_rows(0, 1, 1)

    def test_buffers_cleared_on_setup(self):
        from src.pathtracer.camera.pinhole import PinholeCamera, setup_camera
        from src.pathtracer.core.integrator import (
            get_pixels_numpy,
            render_rows,
            setup_render_target,
        )

        setup_camera(PinholeCamera(aspect_ratio=1.0))
        setup_render_target(4, 4)
        render_rows(0, 4, 1)
        assert get_pixels_numpy().max() > 0

        setup_render_target(4, 4)
        assert get_pixels_numpy().max() == 0

    @pytest.mark.parametrize(
        "row_start,row_end,samples,depth",
        [(-1, 2, 1, 5), (0, 5, 1, 5), (3, 2, 1, 5), (0, 2, 0, 5), (0, 2, 1, -1)],
    )
    def test_render_rows_validation(self, row_start, row_end, samples, depth):
        from src.pathtracer.core.integrator import render_rows, setup_render_target

        setup_render_target(4, 4)
        with pytest.raises(ValueError):
            render_rows(row_start, row_end, samples, depth)


class TestSky:
    """Test radiance of rays that escape the scene."""

    def test_straight_up_is_zenith_blue(self):
        from src.pathtracer.core.integrator import trace_ray

        assert trace_ray((0, 0, 0), (0, 1, 0)) == pytest.approx((0.5, 0.7, 1.0), abs=1e-6)

    def test_straight_down_is_white(self):
        from src.pathtracer.core.integrator import trace_ray

        assert trace_ray((0, 0, 0), (0, -1, 0)) == pytest.approx((1.0, 1.0, 1.0), abs=1e-6)

    def test_horizon_blend(self):
        from src.pathtracer.core.integrator import trace_ray

        # Unnormalized direction: only the unit elevation matters
        assert trace_ray((0, 0, 0), (0, 0, -7)) == pytest.approx((0.75, 0.85, 1.0), abs=1e-6)

    def test_zero_depth_is_black(self):
        from src.pathtracer.core.integrator import trace_ray

        assert trace_ray((0, 0, 0), (0, 1, 0), depth=0) == (0.0, 0.0, 0.0)


class TestBounces:
    """Test the bounce loop against simple scenes."""

    def _mirror_scene(self, albedo=(1.0, 1.0, 1.0)):
        from src.pathtracer.scene.manager import SceneManager

        scene = SceneManager()
        scene.add_metal_sphere((0.0, 0.0, -1.0), 0.5, albedo, fuzz=0.0)
        return scene

    def test_mirror_reflects_sky_behind_camera(self):
        from src.pathtracer.core.integrator import trace_ray

        self._mirror_scene()
        color = trace_ray((0, 0, 0), (0, 0, -1), depth=2)
        assert color == pytest.approx((0.75, 0.85, 1.0), abs=1e-5)

    def test_mirror_depth_budget_exhausted_is_black(self):
        """Test a path that needs two segments but only has one goes black."""
        from src.pathtracer.core.integrator import trace_ray

        self._mirror_scene()
        assert trace_ray((0, 0, 0), (0, 0, -1), depth=1) == (0.0, 0.0, 0.0)

    def test_mirror_attenuation_multiplies(self):
        from src.pathtracer.core.integrator import trace_ray

        self._mirror_scene(albedo=(0.5, 0.5, 0.5))
        color = trace_ray((0, 0, 0), (0, 0, -1), depth=50)
        assert color == pytest.approx((0.375, 0.425, 0.5), abs=1e-5)

    def test_zero_albedo_is_black(self):
        from src.pathtracer.core.integrator import trace_ray
        from src.pathtracer.scene.manager import SceneManager

        scene = SceneManager()
        scene.add_lambertian_sphere((0.0, 0.0, -1.0), 0.5, (0.0, 0.0, 0.0))
        for seed in range(8):
            assert trace_ray((0, 0, 0), (0, 0, -1), seed=seed) == (0.0, 0.0, 0.0)

    def test_enclosed_camera_is_black(self):
        """Test paths that can never escape a closed sphere run out of depth."""
        from src.pathtracer.core.integrator import trace_ray
        from src.pathtracer.scene.manager import SceneManager

        scene = SceneManager()
        scene.add_lambertian_sphere((0.0, 0.0, 0.0), 10.0, (0.9, 0.9, 0.9))
        assert trace_ray((0, 0, 0), (0, 0, -1), depth=10) == (0.0, 0.0, 0.0)

    def test_metal_absorbs_below_surface(self):
        """Test a fuzzed reflection at a grazing hit is sometimes absorbed."""
        from src.pathtracer.core.integrator import trace_ray
        from src.pathtracer.scene.manager import SceneManager

        scene = SceneManager()
        scene.add_metal_sphere((0.0, 0.0, -1.0), 0.5, (1.0, 1.0, 1.0), fuzz=1.0)
        colors = {trace_ray((0, 0, 0), (0, 0.49, -1), seed=seed) for seed in range(128)}
        assert (0.0, 0.0, 0.0) in colors

    def test_lambertian_radiance_bounded_by_sky(self):
        from src.pathtracer.core.integrator import trace_ray
        from src.pathtracer.scene.manager import SceneManager

        scene = SceneManager()
        scene.add_lambertian_sphere((0.0, -100.5, -1.0), 100.0, (0.5, 0.5, 0.5))
        for seed in range(16):
            r, g, b = trace_ray((0, 0, 0), (0, -1, -1), seed=seed)
            assert 0.0 <= r <= 0.5 + 1e-6
            assert 0.0 <= g <= 0.5 + 1e-6
            assert 0.0 <= b <= 0.5 + 1e-6

    def test_same_seed_same_radiance(self):
        from src.pathtracer.core.integrator import trace_ray
        from src.pathtracer.scene.presets import create_default_scene

        create_default_scene()
        first = trace_ray((0, 0, 0), (0.1, -0.2, -1), seed=42)
        second = trace_ray((0, 0, 0), (0.1, -0.2, -1), seed=42)
        assert first == second


class TestQuantize:
    """Test gamma correction and quantization."""

    @pytest.mark.parametrize(
        "value,expected",
        [
            (0.0, 0),
            (0.25, 128),
            (1.0, 255),
            (4.0, 255),
            (0.0625, 64),
        ],
    )
    def test_quantize(self, value, expected):
        from src.pathtracer.core.integrator import quantize, vec3

        result = ti.Vector.field(3, dtype=ti.i32, shape=())

        @ti.kernel
        def test_kernel(x: ti.f32):
            result[None] = quantize(vec3(x, x, x))

        test_kernel(value)
        np.testing.assert_array_equal(result[None].to_numpy(), [expected] * 3)

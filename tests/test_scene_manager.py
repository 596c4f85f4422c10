"""Tests for the unified scene manager.

Tests cover:
- Unified material ids across material types
- Sphere management and validation
- Kernel-side material type lookup
- Scene serialization (dict and JSON files)
- The default preset scene
"""

import json

import pytest
import taichi as ti


class TestMaterials:
    """Tests for material registration."""

    def test_unified_ids_across_types(self):
        from src.pathtracer.scene.manager import MaterialType, SceneManager

        scene = SceneManager()
        a = scene.add_lambertian_material((0.8, 0.8, 0.0))
        b = scene.add_metal_material((0.8, 0.6, 0.2), fuzz=1.0)
        c = scene.add_lambertian_material((0.7, 0.3, 0.3))

        assert (a, b, c) == (0, 1, 2)
        assert scene.get_material_count() == 3
        assert scene.get_material_type_python(b) == MaterialType.METAL
        assert scene.get_material_info(c).type_index == 1
        assert scene.get_material_info(99) is None

    def test_metal_fuzz_recorded_clamped(self):
        from src.pathtracer.scene.manager import SceneManager

        scene = SceneManager()
        mat = scene.add_metal_material((0.8, 0.8, 0.8), fuzz=3.0)
        assert scene.get_material_info(mat).params["fuzz"] == 1.0

    def test_nan_fuzz_from_dict_becomes_mirror(self):
        from src.pathtracer.materials.metal import metal_fuzz
        from src.pathtracer.scene.manager import SceneManager

        scene = SceneManager()
        scene.from_dict(
            {
                "materials": [{"type": "metal", "albedo": [0.8, 0.8, 0.8], "fuzz": float("nan")}],
                "spheres": [],
            }
        )
        info = scene.get_material_info(0)
        assert info.params["fuzz"] == 0.0
        assert metal_fuzz[info.type_index] == 0.0

    def test_kernel_side_lookup(self):
        from src.pathtracer.scene.manager import (
            MaterialType,
            SceneManager,
            get_material_type,
            get_material_type_index,
        )

        scene = SceneManager()
        scene.add_lambertian_material((0.5, 0.5, 0.5))
        scene.add_metal_material((0.5, 0.5, 0.5))
        scene.add_metal_material((0.9, 0.9, 0.9), 0.1)

        types = ti.field(dtype=ti.i32, shape=3)
        indices = ti.field(dtype=ti.i32, shape=3)

        @ti.kernel
        def test_kernel():
            for i in range(3):
                types[i] = get_material_type(i)
                indices[i] = get_material_type_index(i)

        test_kernel()
        assert list(types.to_numpy()) == [
            int(MaterialType.LAMBERTIAN),
            int(MaterialType.METAL),
            int(MaterialType.METAL),
        ]
        assert list(indices.to_numpy()) == [0, 0, 1]

    def test_constructing_clears_previous_scene(self):
        from src.pathtracer.scene.manager import SceneManager

        first = SceneManager()
        first.add_lambertian_sphere((0, 0, -1), 0.5, (0.5, 0.5, 0.5))

        second = SceneManager()
        assert second.get_material_count() == 0
        assert second.get_sphere_count() == 0


class TestSpheres:
    """Tests for sphere management."""

    def test_spheres_share_material(self):
        from src.pathtracer.scene.manager import SceneManager

        scene = SceneManager()
        mat = scene.add_lambertian_material((0.5, 0.5, 0.5))
        assert scene.add_sphere((0, 0, -1), 0.5, mat) == 0
        assert scene.add_sphere((1, 0, -1), 0.5, mat) == 1
        assert scene.get_sphere_count() == 2
        assert scene.spheres[1].material_id == mat

    def test_invalid_material_id(self):
        from src.pathtracer.scene.manager import SceneManager

        scene = SceneManager()
        scene.add_lambertian_material((0.5, 0.5, 0.5))
        with pytest.raises(ValueError):
            scene.add_sphere((0, 0, -1), 0.5, 1)
        with pytest.raises(ValueError):
            scene.add_sphere((0, 0, -1), 0.5, -1)

    def test_invalid_radius(self):
        from src.pathtracer.scene.manager import SceneManager

        scene = SceneManager()
        mat = scene.add_lambertian_material((0.5, 0.5, 0.5))
        with pytest.raises(ValueError):
            scene.add_sphere((0, 0, -1), 0.0, mat)
        assert scene.spheres == []

    def test_convenience_helpers(self):
        from src.pathtracer.scene.manager import MaterialType, SceneManager

        scene = SceneManager()
        sphere, mat = scene.add_metal_sphere((1, 0, -1), 0.5, (0.8, 0.6, 0.2), 0.5)
        assert (sphere, mat) == (0, 0)
        assert scene.get_material_type_python(mat) == MaterialType.METAL

        sphere, mat = scene.add_lambertian_sphere((0, 0, -1), 0.5, (0.7, 0.3, 0.3))
        assert (sphere, mat) == (1, 1)

    def test_limits(self):
        from src.pathtracer.scene.manager import SceneManager

        assert SceneManager.get_max_spheres() == 1024
        assert SceneManager.get_max_materials() == 512


class TestSerialization:
    """Tests for dict and JSON scene round trips."""

    def _build(self):
        from src.pathtracer.scene.manager import SceneManager

        scene = SceneManager()
        ground = scene.add_lambertian_material((0.8, 0.8, 0.0))
        gold = scene.add_metal_material((0.8, 0.6, 0.2), fuzz=0.3)
        scene.add_sphere((0.0, -100.5, -1.0), 100.0, ground)
        scene.add_sphere((1.0, 0.0, -1.0), 0.5, gold)
        return scene

    def test_to_dict(self):
        data = self._build().to_dict()

        assert data["materials"] == [
            {"type": "lambertian", "albedo": [0.8, 0.8, 0.0]},
            {"type": "metal", "albedo": [0.8, 0.6, 0.2], "fuzz": 0.3},
        ]
        assert data["spheres"][1] == {"center": [1.0, 0.0, -1.0], "radius": 0.5, "material_id": 1}

    def test_from_dict_rebuilds_scene(self):
        from src.pathtracer.scene.manager import SceneManager

        data = self._build().to_dict()
        scene = SceneManager()
        scene.from_dict(data)

        assert scene.get_material_count() == 2
        assert scene.get_sphere_count() == 2
        assert scene.to_dict() == data

    @pytest.mark.parametrize(
        "data",
        [
            {"materials": [{"type": "dielectric"}]},
            {"materials": [{"type": "lambertian", "albedo": [1, 2]}]},
            {"materials": [], "spheres": [{"center": [0, 0, 0], "radius": 1.0, "material_id": 0}]},
            [1, 2, 3],
        ],
    )
    def test_from_dict_invalid(self, data):
        from src.pathtracer.scene.manager import SceneManager

        with pytest.raises(ValueError):
            SceneManager().from_dict(data)

    def test_json_file_round_trip(self, tmp_path):
        from src.pathtracer.scene.manager import load_scene_file, save_scene_file

        path = tmp_path / "scene.json"
        original = self._build().to_dict()
        save_scene_file(self._build(), path)

        assert json.loads(path.read_text()) == original
        scene = load_scene_file(path)
        assert scene.to_dict() == original

    def test_load_invalid_json(self, tmp_path):
        from src.pathtracer.scene.manager import load_scene_file

        path = tmp_path / "broken.json"
        path.write_text("{not json")
        with pytest.raises(ValueError):
            load_scene_file(path)

    def test_load_missing_file(self, tmp_path):
        from src.pathtracer.scene.manager import load_scene_file

        with pytest.raises(OSError):
            load_scene_file(tmp_path / "missing.json")


class TestDefaultScene:
    """Tests for the preset four-sphere scene."""

    def test_contents(self):
        from src.pathtracer.scene.manager import MaterialType
        from src.pathtracer.scene.presets import create_default_scene

        scene, camera = create_default_scene(aspect_ratio=2.0)

        assert scene.get_sphere_count() == 4
        assert scene.get_material_count() == 4
        assert [s.radius for s in scene.spheres] == [100.0, 0.5, 0.5, 0.5]
        assert [scene.get_material_type_python(s.material_id) for s in scene.spheres] == [
            MaterialType.LAMBERTIAN,
            MaterialType.LAMBERTIAN,
            MaterialType.METAL,
            MaterialType.METAL,
        ]
        assert scene.get_material_info(3).params["fuzz"] == 1.0
        assert camera.aspect_ratio == 2.0
        assert camera.lookfrom == (0.0, 0.0, 0.0)

    def test_custom_fuzz(self):
        from src.pathtracer.scene.presets import DefaultSceneParams, create_default_scene

        scene, _ = create_default_scene(params=DefaultSceneParams(left_fuzz=0.0))
        assert scene.get_material_info(2).params["fuzz"] == 0.0

"""Preset scene factories.

The default scene is a small still life of four spheres resting on a very
large "ground" sphere, viewed by the default camera from the origin:

    - ground:  center (0, -100.5, -1), radius 100, yellow-ish diffuse
    - center:  center (0, 0, -1), radius 0.5, reddish diffuse
    - left:    center (-1, 0, -1), radius 0.5, silver metal (fuzz 0.3)
    - right:   center (1, 0, -1), radius 0.5, gold metal (fuzz 1.0)

Example:
    >>> scene, camera = create_default_scene(aspect_ratio=16 / 9)
    >>> setup_camera(camera)
    >>> print(f"Scene has {scene.get_sphere_count()} spheres")
    Scene has 4 spheres
"""

from dataclasses import dataclass

from src.pathtracer.camera.pinhole import PinholeCamera
from src.pathtracer.scene.manager import SceneManager

# =============================================================================
# Default Scene Constants
# =============================================================================

GROUND_CENTER = (0.0, -100.5, -1.0)
GROUND_RADIUS = 100.0
GROUND_ALBEDO = (0.8, 0.8, 0.0)

SPHERE_RADIUS = 0.5

CENTER_SPHERE_CENTER = (0.0, 0.0, -1.0)
CENTER_SPHERE_ALBEDO = (0.7, 0.3, 0.3)

LEFT_SPHERE_CENTER = (-1.0, 0.0, -1.0)
LEFT_SPHERE_ALBEDO = (0.8, 0.8, 0.8)
LEFT_SPHERE_FUZZ = 0.3

RIGHT_SPHERE_CENTER = (1.0, 0.0, -1.0)
RIGHT_SPHERE_ALBEDO = (0.8, 0.6, 0.2)
RIGHT_SPHERE_FUZZ = 1.0


@dataclass
class DefaultSceneParams:
    """Adjustable parameters for the default scene.

    Attributes:
        left_fuzz: Fuzz of the left (silver) metal sphere.
        right_fuzz: Fuzz of the right (gold) metal sphere.
    """

    left_fuzz: float = LEFT_SPHERE_FUZZ
    right_fuzz: float = RIGHT_SPHERE_FUZZ


def create_default_scene(
    aspect_ratio: float = 16.0 / 9.0,
    params: DefaultSceneParams | None = None,
) -> tuple[SceneManager, PinholeCamera]:
    """Create the default four-sphere scene.

    The returned camera is not yet uploaded; call setup_camera() on it
    before rendering.

    Args:
        aspect_ratio: Width divided by height of the output image.
        params: Optional DefaultSceneParams. If None, uses defaults.

    Returns:
        A tuple of (SceneManager, PinholeCamera).
    """
    if params is None:
        params = DefaultSceneParams()

    scene = SceneManager()

    ground_mat = scene.add_lambertian_material(albedo=GROUND_ALBEDO)
    center_mat = scene.add_lambertian_material(albedo=CENTER_SPHERE_ALBEDO)
    left_mat = scene.add_metal_material(albedo=LEFT_SPHERE_ALBEDO, fuzz=params.left_fuzz)
    right_mat = scene.add_metal_material(albedo=RIGHT_SPHERE_ALBEDO, fuzz=params.right_fuzz)

    scene.add_sphere(GROUND_CENTER, GROUND_RADIUS, ground_mat)
    scene.add_sphere(CENTER_SPHERE_CENTER, SPHERE_RADIUS, center_mat)
    scene.add_sphere(LEFT_SPHERE_CENTER, SPHERE_RADIUS, left_mat)
    scene.add_sphere(RIGHT_SPHERE_CENTER, SPHERE_RADIUS, right_mat)

    camera = PinholeCamera(aspect_ratio=aspect_ratio)

    return scene, camera

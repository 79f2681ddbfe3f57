from .loader import load_scene, parse_scene
from .models import SceneDocument

__all__ = ["load_scene", "parse_scene", "SceneDocument"]

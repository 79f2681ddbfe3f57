"""glbpack: pack a glTF scene and its resources into a binary glTF file."""

__version__ = "0.1.0"

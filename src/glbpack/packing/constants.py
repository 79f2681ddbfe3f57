"""Binary glTF (version 1) container constants."""

from __future__ import annotations

MAGIC = 0x676C5446  # 'glTF', stored big-endian
CONTAINER_VERSION = 1
HEADER_SIZE = 20
SCENE_FORMAT_JSON = 0

SCENE_ALIGNMENT = 4
SCENE_PADDING_BYTE = b" "

INPUT_SUFFIX = ".gltf"
OUTPUT_SUFFIX = ".glb"

EXTENSION_NAME = "KHR_binary_glTF"
BUFFER_NAME = "binary_glTF"
COMPAT_BUFFER_NAME = "KHR_binary_glTF"
BODY_BUFFER_URI = "data"

SHADER_VIEW_PREFIX = "binary_shader_"
IMAGE_VIEW_PREFIX = "binary_images_"

# Image introspection is not performed; embedded images carry these values.
PLACEHOLDER_IMAGE_MIME_TYPE = "image/i-dont-know"
PLACEHOLDER_IMAGE_SIZE = 9999

MAX_RESOURCE_SIZE = 512 * 1024 * 1024
UINT32_MAX = 0xFFFFFFFF

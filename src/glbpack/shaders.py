"""Built-in GLSL shader sources used by the ``--shaders`` override.

Shader ids follow a ``<name>VS`` / ``<name>FS`` convention; ``d0VS`` and
``d0FS`` are the ids produced by the usual exporters.
"""

from __future__ import annotations

from typing import Optional

__all__ = [
    "VERTEX_SHADER",
    "FRAGMENT_SHADER",
    "KNOWN_SHADER_IDS",
    "builtin_shader_source",
]

VERTEX_SHADER = """// Create VS

precision highp float;

attribute vec3 a_position;
attribute vec3 a_normal;
attribute vec3 a_batchId;
varying vec3 v_normal;
uniform mat4 u_modelViewMatrix;
uniform mat4 u_projectionMatrix;
uniform mat3 u_normalMatrix;

void main(void) {
  v_normal = u_normalMatrix * a_normal;

  vec4 pos;
  pos = u_modelViewMatrix * vec4(a_position,1.0);
  gl_Position = u_projectionMatrix * pos;
}

"""

FRAGMENT_SHADER = """// Create FS

precision highp float;
uniform vec4 u_ambient;
uniform vec4 u_diffuse;
uniform vec4 u_emission;
uniform vec4 u_specular;
uniform float u_shininess;
uniform float u_transparency;

varying vec3 v_position;
varying vec3 v_normal;

void main(void) {
vec3 normal = normalize(v_normal);
if (gl_FrontFacing == false) normal = -normal;
vec4 color = vec4(0., 0., 0., 0.);
vec4 diffuse = vec4(0., 0., 0., 1.);
vec3 diffuseLight = vec3(0., 0., 0.);
vec4 emission;
vec4 ambient;
vec4 specular;

ambient = u_ambient;
diffuse = u_diffuse;
emission = u_emission;
specular = u_specular;

color.xyz += specular.xyz;
// brighten only
diffuse.xyz *= max(dot(normal,vec3(0.,0.,1.)), 0.);
color.xyz += diffuse.xyz;
color.xyz += emission.xyz;
color = vec4(color.rgb * diffuse.a, diffuse.a * u_transparency);
gl_FragColor = color;
}
"""

KNOWN_SHADER_IDS = frozenset({"d0VS", "d0FS"})


def builtin_shader_source(shader_id: str) -> Optional[str]:
    """Return the built-in source matching ``shader_id``, or None."""
    if shader_id.endswith("FS"):
        return FRAGMENT_SHADER
    if shader_id.endswith("VS"):
        return VERTEX_SHADER
    return None

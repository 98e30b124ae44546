"""Present the composed UI surface through an OpenGL texture."""
from __future__ import annotations

import ctypes
from array import array
from dataclasses import dataclass
from typing import Tuple

import pygame
from OpenGL import GL

VERTEX_POSITION_ATTRIB = 0
VERTEX_TEXCOORD_ATTRIB = 1

# x, y, u, v for a full-screen triangle strip.
QUAD_VERTICES = (
    -1.0, -1.0, 0.0, 0.0,
    1.0, -1.0, 1.0, 0.0,
    -1.0, 1.0, 0.0, 1.0,
    1.0, 1.0, 1.0, 1.0,
)

VERTEX_SHADER = """
    #version 330 core
    layout(location = 0) in vec2 a_position;
    layout(location = 1) in vec2 a_uv;
    out vec2 v_uv;
    void main() {
        v_uv = a_uv;
        gl_Position = vec4(a_position, 0.0, 1.0);
    }
"""

FRAGMENT_SHADER = """
    #version 330 core
    uniform sampler2D u_texture;
    in vec2 v_uv;
    out vec4 frag_color;
    void main() {
        frag_color = texture(u_texture, v_uv);
    }
"""


def configure_gl_attributes() -> int:
    """Request a 3.3 core context; returns the display flags to use."""

    pygame.display.gl_set_attribute(pygame.GL_CONTEXT_PROFILE_MASK, pygame.GL_CONTEXT_PROFILE_CORE)
    pygame.display.gl_set_attribute(pygame.GL_CONTEXT_MAJOR_VERSION, 3)
    pygame.display.gl_set_attribute(pygame.GL_CONTEXT_MINOR_VERSION, 3)
    return pygame.OPENGL | pygame.DOUBLEBUF


class ShaderError(RuntimeError):
    """Raised when the presentation shader fails to build."""


def _stage(kind: int, source: str) -> int:
    handle = GL.glCreateShader(kind)
    GL.glShaderSource(handle, source)
    GL.glCompileShader(handle)
    if GL.glGetShaderiv(handle, GL.GL_COMPILE_STATUS):
        return handle
    message = GL.glGetShaderInfoLog(handle).decode("utf-8", "ignore")
    GL.glDeleteShader(handle)
    raise ShaderError(f"shader stage did not compile: {message}")


@dataclass
class TextureProgram:
    program: int
    texture_location: int

    @classmethod
    def build(cls, vertex_src: str = VERTEX_SHADER, fragment_src: str = FRAGMENT_SHADER) -> "TextureProgram":
        stages = [_stage(GL.GL_VERTEX_SHADER, vertex_src), _stage(GL.GL_FRAGMENT_SHADER, fragment_src)]
        program = GL.glCreateProgram()
        for handle in stages:
            GL.glAttachShader(program, handle)
        GL.glLinkProgram(program)
        for handle in stages:
            GL.glDeleteShader(handle)
        if not GL.glGetProgramiv(program, GL.GL_LINK_STATUS):
            message = GL.glGetProgramInfoLog(program).decode("utf-8", "ignore")
            GL.glDeleteProgram(program)
            raise ShaderError(f"presentation program did not link: {message}")
        return cls(program, GL.glGetUniformLocation(program, "u_texture"))


class GLPresenter:
    """Uploads the UI surface each frame and draws it as one textured quad."""

    def __init__(self) -> None:
        self._program = TextureProgram.build()
        self._vao = GL.glGenVertexArrays(1)
        self._vbo = GL.glGenBuffers(1)
        vertices = array("f", QUAD_VERTICES)
        stride = 4 * vertices.itemsize
        GL.glBindVertexArray(self._vao)
        GL.glBindBuffer(GL.GL_ARRAY_BUFFER, self._vbo)
        GL.glBufferData(GL.GL_ARRAY_BUFFER, len(vertices) * vertices.itemsize, vertices.tobytes(), GL.GL_STATIC_DRAW)
        GL.glEnableVertexAttribArray(VERTEX_POSITION_ATTRIB)
        GL.glVertexAttribPointer(VERTEX_POSITION_ATTRIB, 2, GL.GL_FLOAT, False, stride, ctypes.c_void_p(0))
        GL.glEnableVertexAttribArray(VERTEX_TEXCOORD_ATTRIB)
        GL.glVertexAttribPointer(
            VERTEX_TEXCOORD_ATTRIB,
            2,
            GL.GL_FLOAT,
            False,
            stride,
            ctypes.c_void_p(2 * vertices.itemsize),
        )
        GL.glBindVertexArray(0)
        GL.glBindBuffer(GL.GL_ARRAY_BUFFER, 0)

        self._texture = GL.glGenTextures(1)
        GL.glBindTexture(GL.GL_TEXTURE_2D, self._texture)
        for parameter, value in (
            (GL.GL_TEXTURE_MIN_FILTER, GL.GL_NEAREST),
            (GL.GL_TEXTURE_MAG_FILTER, GL.GL_NEAREST),
            (GL.GL_TEXTURE_WRAP_S, GL.GL_CLAMP_TO_EDGE),
            (GL.GL_TEXTURE_WRAP_T, GL.GL_CLAMP_TO_EDGE),
        ):
            GL.glTexParameteri(GL.GL_TEXTURE_2D, parameter, value)
        GL.glBindTexture(GL.GL_TEXTURE_2D, 0)
        self._size: Tuple[int, int] = (0, 0)

    def present(self, surface: pygame.Surface) -> None:
        self.update(surface)
        GL.glClearColor(0.0, 0.0, 0.0, 1.0)
        GL.glClear(GL.GL_COLOR_BUFFER_BIT)
        self.draw()
        pygame.display.flip()

    def update(self, surface: pygame.Surface) -> None:
        width, height = surface.get_size()
        data = pygame.image.tostring(surface, "RGBA", True)
        GL.glBindTexture(GL.GL_TEXTURE_2D, self._texture)
        if (width, height) != self._size:
            GL.glTexImage2D(
                GL.GL_TEXTURE_2D, 0, GL.GL_RGBA, width, height, 0, GL.GL_RGBA, GL.GL_UNSIGNED_BYTE, data
            )
            self._size = (width, height)
        else:
            GL.glTexSubImage2D(GL.GL_TEXTURE_2D, 0, 0, 0, width, height, GL.GL_RGBA, GL.GL_UNSIGNED_BYTE, data)
        GL.glBindTexture(GL.GL_TEXTURE_2D, 0)

    def draw(self) -> None:
        if self._size == (0, 0):
            return
        GL.glUseProgram(self._program.program)
        GL.glActiveTexture(GL.GL_TEXTURE0)
        GL.glBindTexture(GL.GL_TEXTURE_2D, self._texture)
        GL.glUniform1i(self._program.texture_location, 0)
        GL.glBindVertexArray(self._vao)
        GL.glDrawArrays(GL.GL_TRIANGLE_STRIP, 0, 4)
        GL.glBindVertexArray(0)
        GL.glBindTexture(GL.GL_TEXTURE_2D, 0)

    def release(self) -> None:
        if self._vao:
            GL.glDeleteVertexArrays(1, [self._vao])
            self._vao = 0
        if self._vbo:
            GL.glDeleteBuffers(1, [self._vbo])
            self._vbo = 0
        if self._texture:
            GL.glDeleteTextures(1, [self._texture])
            self._texture = 0
        if self._program.program:
            GL.glDeleteProgram(self._program.program)
            self._program.program = 0


__all__ = ["GLPresenter", "ShaderError", "TextureProgram", "configure_gl_attributes"]

"""Версия пакета."""

from __future__ import annotations

from importlib import metadata

DIST_NAME = "stencil-templates"

# Версия исходного дерева, когда дистрибутив не установлен
FALLBACK_VERSION = "0.4.0"


def tool_version() -> str:
    try:
        return metadata.version(DIST_NAME)
    except metadata.PackageNotFoundError:
        return FALLBACK_VERSION


__all__ = ["DIST_NAME", "tool_version"]

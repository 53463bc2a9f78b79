"""hpm: package manager engine for launcher-style plugin hosts."""

from __future__ import annotations

from hpm.plugin import PackageManagerPlugin, create_plugin

__all__ = ["PackageManagerPlugin", "create_plugin"]

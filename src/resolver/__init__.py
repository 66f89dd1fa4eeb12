"""Dependency resolution engine.

Import from the submodules directly, e.g. ``from resolver.service import DependencyResolver``.
"""

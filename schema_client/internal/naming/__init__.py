from .name_resolver import derive_name, resolve_names

__all__ = ["derive_name", "resolve_names"]

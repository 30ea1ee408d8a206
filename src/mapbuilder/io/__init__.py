"""Input/output module for map layout files."""

from .parser import layout_from_dict, layout_to_dict, load_layout, save_layout

__all__ = ["layout_from_dict", "layout_to_dict", "load_layout", "save_layout"]

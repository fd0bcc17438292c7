"""
CursorGallery - Named custom cursor profiles for public web pages.

An administrator keeps a gallery of cursor configurations (image, size,
animation, blend mode, shadow) and activates one of them on a page with
an embed directive such as ``[custom_cursor id="2"]``.

Storage:
- One ordered gallery list plus a current-selection id
- Pluggable key-value backing store (in-memory or JSON file)
- One-time migration from the legacy single-cursor layout

Rendering:
- Pure record -> (style, script) code generation
- Safe for concurrent use, no shared mutable state
"""

__version__ = "0.1.0"
__author__ = "CursorGallery Team"
__license__ = "MIT"

# letgen/logging/tags.py
"""
Central place for defining logging subsystem tags.

Changing a tag here updates it project-wide.
"""

CODEGEN = "[CODEGEN]"
MANIFEST = "[MANIFEST]"
SCAN = "[SCAN]"
WRITER = "[WRITER]"
ENGINE = "[ENGINE]"
LOADER = "[LOADER]"
CLI = "[CLI]"
CONFIG = "[CONFIG]"

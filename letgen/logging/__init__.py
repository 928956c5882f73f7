# letgen/logging/__init__.py

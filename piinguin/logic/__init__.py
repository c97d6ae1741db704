# piinguin/logic/__init__.py

"""Path resolution and structural config editing."""

# piinguin/service/__init__.py

"""Settings, the suggestion engine and playground session state."""

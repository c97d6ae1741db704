# piinguin/engine/__init__.py

"""Engine package implementing the PII processor.

This package contains the config schema, the presidio-backed recognizers and
operators, and the processor that strips events against configs.
"""

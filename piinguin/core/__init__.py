# piinguin/core/__init__.py

"""Core domain models and utilities used across piinguin.

This package provides the annotated value model, exceptions, and the rule
catalog shared by the rest of the application.
"""

"""Content store access layer.

This package talks to the remote content API and writes dispatch
records into it with bounded concurrency.
"""

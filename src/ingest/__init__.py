"""Import and export flows.

This package reads records from streams, files, and crawled sites,
validates them, and drives them into the content store.
"""

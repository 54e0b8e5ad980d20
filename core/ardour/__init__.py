"""core/ardour — Pure Ardour session model and LV2 index resolution.

This package contains zero I/O, zero network calls, zero filesystem access.
Parsing, resolution and summaries are deterministic functions of their
inputs (session bytes plus a DescriptorProvider).

Filesystem writes (backup, atomic replace) live in ingestion/patch_writer.py.
"""

"""core/lv2 — LV2 parameter catalog contract.

Zero I/O.  Implementations that scan bundles or read catalog files live in
ingestion/.
"""

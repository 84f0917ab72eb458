"""Performance benchmarks for the quantum assembler.

Microbenchmarks for the hot paths: operator application on registers and
views, and measurement with collapse.
"""

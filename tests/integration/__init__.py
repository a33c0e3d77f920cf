"""
Integration tests for morfo.

These tests build and run the bundled example projects with the system C
compiler, validating the complete scan, compile, link and run cycle.
"""

"""Frontends - User interfaces for taskweave.

Submodules:
    cli/    Command-line interface
"""

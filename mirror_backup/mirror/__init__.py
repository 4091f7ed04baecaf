"""
Mirror — Keep a local bare mirror of every workspace repository.

This module lists the workspace, clones or fetches each repository
under a timeout and retry policy, and records the outcome.
"""

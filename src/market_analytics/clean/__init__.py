"""Cleaning utilities for records fetched from the hosted store.

Provides functions to normalize payload aliases, flatten relation objects,
parse creation timestamps and validate rows before they reach the
aggregation core.
"""

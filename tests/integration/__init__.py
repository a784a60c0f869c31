"""Integration tests for di-xml-export.

These tests exercise the whole workflow against the filesystem:
- Declaration files read from disk
- Real .xlsx workbooks written and read back
"""

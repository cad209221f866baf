"""
roster_sync - Google Contacts roster to Google Sheets synchronization.

Copies the members of a fixed set of contact groups (Active, Guest, Student,
Inactive) into a shared spreadsheet, rewriting it only when the directory
changed since the sheet was last modified.
"""

__version__ = "0.1.0"

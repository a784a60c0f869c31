"""
User-facing API for the import → select → export workflow.
"""

from di_xml_export.api.session import ImportSession, UploadedFile, is_large_content

__all__ = [
    'ImportSession',
    'UploadedFile',
    'is_large_content',
]

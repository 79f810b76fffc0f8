"""
vrai/api/files.py — Multipart helpers shared by the upload endpoints.
"""

from fastapi import UploadFile

from vrai.validators import FilePayload


async def read_upload(upload: UploadFile) -> FilePayload:
    """Reads an uploaded part fully into memory."""
    content = await upload.read()
    await upload.close()
    return FilePayload(
        filename=upload.filename or "upload",
        content=content,
        content_type=upload.content_type or "application/octet-stream",
    )

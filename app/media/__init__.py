"""
Media app for chunked and direct uploads.

This app provides:
- UploadSession / UploadChunk models for in-flight chunked uploads
- Session lifecycle management with row-locked chunk storage
- Ordered, size-checked reassembly
- Handoff of finished files to the configured object store
- Periodic sweep of stale sessions
"""

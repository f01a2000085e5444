"""
QuillNotes.

- backend/: API, services, persistence, note encryption, AI text transforms
"""

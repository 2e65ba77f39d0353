"""
File Manager API.

List, upload and delete files in an S3-compatible bucket over HTTP, with a
browser file manager served alongside the API.
"""

"""
Utility modules for ReviewExport.

Cross-cutting concerns:
- HTTP client: Retrying GET with exponential backoff and jitter
- Storage: CSV export of normalized reviews
"""

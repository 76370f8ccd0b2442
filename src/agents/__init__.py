"""
Agent implementations for ReviewExport.

Contains the modules that move reviews through the pipeline:
- Ingestion (API client + pagination engine)
- Record Normalization
- Product identifier extraction
"""

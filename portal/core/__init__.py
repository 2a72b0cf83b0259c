"""
Shared, cross-cutting code for the portal API.

`core/` holds small building blocks that multiple features use
(DB wiring, settings, the Google API client). Keep feature-specific SQL and
business logic in the corresponding feature package (e.g. `sheets/`).
"""

"""
Spreadsheet-backed report data: config resolution, fetching, caching and
admin management of per-report sheet configuration.
"""

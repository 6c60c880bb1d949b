"""
API Endpoints Package

Available Endpoints:
- studio: Server-rendered studio pages, submission, status polling and downloads
- system: Health checks and system information
"""

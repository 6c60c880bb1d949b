"""
API package for Feature Studio.

This package contains API endpoints and routing logic for handling HTTP requests.
Endpoints are organized by functionality:
- studio: Feature forms, submission, results and downloads
- system: Health checks

The gateway route itself lives in the top-level ``api_gateway`` package.
"""

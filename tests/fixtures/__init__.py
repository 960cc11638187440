"""Test fixtures for gitlab-mr-refs.

This package contains mock API response data and handlers for testing:
- gitlab_responses: In-memory GitLab REST API for httpx.MockTransport
- rate_limit_responses: Rate limit response header variants
"""

"""
MediTrack Test Suite
====================

Test Structure:
- test_api/: API endpoint tests for FastAPI routes
- test_services/: Service, policy and reminder engine tests
- conftest.py: Shared pytest fixtures
"""

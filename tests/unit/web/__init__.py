"""Unit tests for Motocat web route modules.

Routes are exercised through FastAPI's TestClient with the service
dependency replaced by a mock.
"""

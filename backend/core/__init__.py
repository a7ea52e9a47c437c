"""Core backend infrastructure for the PAC backend.

This package contains configuration, logging, database, error and dependency
helpers used by the FastAPI application factory.
"""

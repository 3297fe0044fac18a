"""
Test helpers package for the Marketplace Applications API

Provides reusable helpers for:
- Test data factories (factories.py)
- In-memory stand-ins for repositories and outbound clients (marketplace.py)
"""

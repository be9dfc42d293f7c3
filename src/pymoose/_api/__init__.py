"""Endpoint modules for the ticket-service REST API (internal)."""

"""Pydantic data models shared by the core and the API layer."""

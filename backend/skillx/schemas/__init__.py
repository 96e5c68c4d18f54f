"""Pydantic schemas for assessment sessions and backend payloads."""

"""Gatehouse: registration, sign-in and session management service."""

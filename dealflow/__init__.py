"""Dealflow CRM backend."""

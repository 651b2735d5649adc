"""Audit trail for administrative actions."""

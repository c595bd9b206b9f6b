"""Patrol Dispatch: back office for a security-response dispatch desk."""

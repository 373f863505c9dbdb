"""Shared utilities: logging setup, retries, HTTP pooling and pagination."""

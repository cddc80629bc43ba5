"""
Backend package for the Wally HTTP API.

This package provides a FastAPI application over the board, student, photo
and account services, with storage and database abstractions that run
against Postgres and S3-compatible storage or fully in memory.
"""

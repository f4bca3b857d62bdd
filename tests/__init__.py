"""
Librarian Test Suite

Tests are organized into:
- unit/: repository contract, services, tokens and the command line
- integration/: the HTTP API through an in-process ASGI client
"""

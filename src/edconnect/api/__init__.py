"""HTTP API for EdConnect."""

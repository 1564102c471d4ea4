"""EdConnect: K-12 AI tutoring and classroom management service."""

__version__ = "1.0.0"

"""
Backend package for Study Spot Live.

Wraps the hosted Firestore collection of study spots behind a repository and
a view-model, and exposes that state over a small FastAPI app and a CLI.
"""

"""FastAPI service exposing the live document graph."""

"""Gemini service adapters and the trip planning orchestrator."""

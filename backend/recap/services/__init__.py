"""Service layer: transcription, extraction, persistence mapping and follow-up emails."""

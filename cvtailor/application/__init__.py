"""Application layer: service orchestrators for the analysis pipeline."""

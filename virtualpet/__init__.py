"""Virtual pet simulator — FastAPI service backed by a generative language model."""

"""In-process UI models (Toolkit tree and Legacy scene graph) and their adapters."""

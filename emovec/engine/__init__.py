"""The embedding engine: text in, embedding vector out."""
from emovec.engine.engine import EmbeddingEngine, EngineStatus, LoadedModel, format_input

__all__ = ["EmbeddingEngine", "EngineStatus", "LoadedModel", "format_input"]

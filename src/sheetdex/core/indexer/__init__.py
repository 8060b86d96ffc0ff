from .main import Indexer

__all__ = ["Indexer"]

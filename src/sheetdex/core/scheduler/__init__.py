from .coordinator import BatchCoordinator, BatchOutcome

__all__ = ["BatchCoordinator", "BatchOutcome"]

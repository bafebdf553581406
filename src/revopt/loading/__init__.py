"""Dataset loading: the network/cache orchestrator and its application handle."""

from revopt.loading.context import DataContext
from revopt.loading.orchestrator import DatasetLoader

__all__ = ["DataContext", "DatasetLoader"]

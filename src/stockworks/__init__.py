"""StockWorks: stock-photography prompt, image and metadata tooling."""

__version__ = "0.1.0"

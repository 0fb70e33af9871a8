"""StockWorks applications."""

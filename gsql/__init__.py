"""SQL query builder and object mapper with dialects, transactions and middleware."""

__version__ = "0.1.0"
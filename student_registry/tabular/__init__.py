from .reader import ContentError, RawRow, TabularData, read, tokenize_line

__all__ = ["ContentError", "RawRow", "TabularData", "read", "tokenize_line"]

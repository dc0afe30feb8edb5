"""CodeGraph Viz: layout and trace-path engine for code-structure graphs."""

__version__ = "0.1.0"

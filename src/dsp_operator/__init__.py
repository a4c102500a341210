"""Parameter resolution and credential materialization for the Data Science Pipelines operator."""

__version__ = "0.1.0"

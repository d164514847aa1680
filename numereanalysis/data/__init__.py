"""Tabular data sources for the discrete-data analyzers."""

from numereanalysis.data.source import DataSource, TableDataSource

__all__ = [
    "DataSource",
    "TableDataSource",
]

"""CodeHealth CLI: dead code, duplicate and dependency analysis for JavaScript / TypeScript repositories."""

__version__ = "0.1.0"

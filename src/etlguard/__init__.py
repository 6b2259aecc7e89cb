"""
etlguard: Structural validation for visually designed ETL data-flow graphs.

Checks a snapshot of an editor's graph against component schemas, ETL
connectivity policy, and cycle constraints, and reports every finding as a
structured result rather than raising.
"""

__version__ = "0.1.0"

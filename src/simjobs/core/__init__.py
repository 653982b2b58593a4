"""
simjobs.core - infrastructure primitives for the job pipeline.

Modules
-------
errors      Typed error hierarchy
logging     structlog configuration and context helpers
dialect     SQL dialects (SQLite, MySQL)
protocols   DB-API connection protocol
adapters    Database adapters + registry
schema      Record store DDL
config      Settings and backend enums
"""

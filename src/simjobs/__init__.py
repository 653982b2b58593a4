"""
simjobs - durable simulation job dispatch.

A client submits a parameterized simulation; simjobs records it, queues
it through a transactional outbox, and a worker claims, runs and settles
it with guarded status transitions.

Subpackages
-----------
core     Errors, logging, configuration, database adapters
jobs     Submitter, transports, processor, worker
cli      ``simjobs`` command line
"""

__version__ = "0.1.0"

"""
Shared TV catalog library code.

This package holds the catalog core that is reused by every resource in the
FastAPI app in `api/`:
- relation entity resolution and link synchronization
- transactional units over a pooled connection
- listing query composition (filters, sorting, pagination)

App entrypoints (FastAPI routers) should live outside this package and
import from `tv_catalog` rather than the other way around.
"""

"""
Integrations layer.
This package contains all code used to communicate with catalog storage:
- the hosted Supabase backend (PostgREST table + GoTrue auth)
- the local stand-ins used when nothing is configured

Key rule:
- API routes MUST NOT call storage backends directly.
- Routes go through CatalogStore (integrations/policy/reconciliation.py), which
  decides between remote and local targets.

Switching implementations:
- The selection of local vs remote clients happens in ONE place
  (careguard/api/dependencies.py: build_services).
"""

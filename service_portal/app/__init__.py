"""
Supplier Portal Gateway Service package.

The gateway fronts the supplier portal UI, enforcing:
- Authentication: via the external session provider
- Normalization: one canonical shape for every ERP record
- Fallback: demo data whenever the ERP cannot answer

Structure:
- app.main: FastAPI app and routes.
- app.adapters: HTTP clients for the ERP and the session provider.
- app.domain: Normalizer, fallback supplier, merger and the resource gateway.
"""

"""
Services Layer

Pure allocation services that:
- Accept domain inputs (pairings, tables, history providers)
- Return domain outputs (immutable AllocationResult values)
- Do NOT depend on HTTP request/response objects
- Do NOT mutate or persist anything
"""

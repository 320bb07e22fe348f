"""Core (UI-agnostic) emigration dashboard logic.

This package contains:
- record parsing and the record store boundary (Firestore / CSV -> YearRecord)
- aggregation and reshaping functions
- filter normalization
- page compute functions (JSON-serializable payloads)
- chart helpers (Altair -> Vega-Lite spec dict)
"""

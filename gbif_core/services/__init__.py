# =============================================================================
# gbif_core/services/__init__.py
# =============================================================================
# One module per GBIF API area.  Each function takes a GbifClient and the
# already-validated request parameters (GBIF's camelCase names) and returns
# decoded JSON exactly as GBIF sends it, unless the function says otherwise.
# =============================================================================

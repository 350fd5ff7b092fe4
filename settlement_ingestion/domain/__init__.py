"""Pure import types, upload checks and row mapping. ZERO I/O."""

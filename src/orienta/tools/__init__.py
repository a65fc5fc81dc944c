"""Development helpers (logging setup and opt-in timing instrumentation)."""

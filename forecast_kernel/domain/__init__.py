"""Pure domain support for the forecast kernel."""

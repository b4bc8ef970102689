"""Browser viewer for the hover simulator."""

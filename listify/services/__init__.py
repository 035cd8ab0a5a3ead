"""Registry loading and landing page composition."""

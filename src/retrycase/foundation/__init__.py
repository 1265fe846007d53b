"""Foundation: error taxonomy, Result type and settings."""

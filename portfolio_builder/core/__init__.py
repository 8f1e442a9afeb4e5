"""Configuration, logging, errors and database connection."""

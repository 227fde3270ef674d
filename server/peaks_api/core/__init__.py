"""Application core: settings, database, errors, auth and observability."""

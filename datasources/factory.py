"""
Factory for creating the telemetry store connector selected by configuration.

Copyright (c) 2026 Stefan Kumarasinghe

Licensed under the Apache License, Version 2.0 (the "License");
you may not use this file except in compliance with the License.
You may obtain a copy of the License at http://www.apache.org/licenses/LICENSE-2.0
"""

from connectors.memory import MemoryConnector
from connectors.postgrest import PostgrestConnector
from connectors.sql import SqlConnector


class DataSourceFactory:

    @staticmethod
    def create_store(config):
        from config import TELEMETRY_BACKEND_MEMORY, TELEMETRY_BACKEND_POSTGREST, TELEMETRY_BACKEND_SQL

        timeout = getattr(config, "connector_timeout", 30)
        if config.telemetry_backend == TELEMETRY_BACKEND_POSTGREST:
            return PostgrestConnector(config.postgrest_url, api_key=config.postgrest_api_key, timeout=timeout)
        if config.telemetry_backend == TELEMETRY_BACKEND_SQL:
            if not config.database_url:
                raise ValueError("SQL telemetry backend requires PULSECHECK_DATABASE_URL")
            from database import init_database

            init_database(config.database_url)
            return SqlConnector(timeout=timeout)
        if config.telemetry_backend == TELEMETRY_BACKEND_MEMORY:
            return MemoryConnector()
        raise ValueError("Unsupported telemetry backend")

"""
Anomaly detection over process telemetry: executions whose duration deviates from their process type baseline, and process types whose recent error rate exceeds the acceptable ceiling.

Copyright (c) 2026 Stefan Kumarasinghe

Licensed under the Apache License, Version 2.0 (the "License");
you may not use this file except in compliance with the License.
You may obtain a copy of the License at http://www.apache.org/licenses/LICENSE-2.0
"""

from engine.anomaly import duration, error_rate

__all__ = ["duration", "error_rate"]

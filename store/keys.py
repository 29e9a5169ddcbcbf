"""
Key naming for values kept in Redis.

Copyright (c) 2026 Stefan Kumarasinghe

Licensed under the Apache License, Version 2.0 (the "License");
you may not use this file except in compliance with the License.
You may obtain a copy of the License at http://www.apache.org/licenses/LICENSE-2.0
"""

from __future__ import annotations

import hashlib


def _slug(value: str) -> str:
    return hashlib.sha256(value.encode()).hexdigest()[:32]


def snapshot(instance_id: str) -> str:
    return f"pc:{_slug(instance_id)}:snapshot"

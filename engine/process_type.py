"""
Process type value object used to group executions of the same recurring job.

A process type is the first two underscore-delimited tokens of a process name,
so ``data_sync_job`` and ``data_sync_nightly`` both belong to ``data_sync``.
Both detectors group through :func:`process_type_of` so they always agree on
the population an execution belongs to.

Copyright (c) 2026 Stefan Kumarasinghe

Licensed under the Apache License, Version 2.0 (the "License");
you may not use this file except in compliance with the License.
You may obtain a copy of the License at http://www.apache.org/licenses/LICENSE-2.0
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

_SEPARATOR = "_"
_TOKENS = 2


@dataclass(frozen=True, order=True)
class ProcessType:
    value: str

    def __post_init__(self) -> None:
        if not isinstance(self.value, str) or not self.value.strip():
            raise ValueError("process type must be a non-empty string")

    @classmethod
    def parse(cls, process_name: str) -> ProcessType:
        if not isinstance(process_name, str) or not process_name.strip():
            raise ValueError(f"cannot derive a process type from {process_name!r}")
        return cls(_SEPARATOR.join(process_name.split(_SEPARATOR)[:_TOKENS]))

    def __str__(self) -> str:
        return self.value


def process_type_of(process_name: Optional[str]) -> Optional[ProcessType]:
    if not process_name:
        return None
    try:
        return ProcessType.parse(process_name)
    except ValueError:
        return None

"""
Telemetry records read from the process store: process executions and the
failure events recorded against them in the audit log.

Copyright (c) 2026 Stefan Kumarasinghe

Licensed under the Apache License, Version 2.0 (the "License");
you may not use this file except in compliance with the License.
You may obtain a copy of the License at http://www.apache.org/licenses/LICENSE-2.0
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from engine.enums import ExecutionStatus
from engine.process_type import ProcessType, process_type_of


@dataclass(frozen=True)
class ProcessExecution:
    id: str
    process_name: Optional[str]
    start_time: Optional[datetime]
    end_time: Optional[datetime] = None
    status: ExecutionStatus = ExecutionStatus.running

    @property
    def process_type(self) -> Optional[ProcessType]:
        return process_type_of(self.process_name)

    @property
    def is_complete(self) -> bool:
        return (
            self.status == ExecutionStatus.completed
            and bool(self.process_name)
            and self.start_time is not None
            and self.end_time is not None
        )

    @property
    def duration_seconds(self) -> Optional[float]:
        if self.start_time is None or self.end_time is None:
            return None
        return (self.end_time - self.start_time).total_seconds()


@dataclass(frozen=True)
class ErrorEvent:
    timestamp: datetime
    system_process_id: Optional[str]
    status: str = "failure"

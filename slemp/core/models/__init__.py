"""
Domain models — Pydantic types for the provisioner.

    from slemp.core.models import ConfigurationRecord, Receipt, StepResult
"""

from slemp.core.models.config import ConfigurationRecord, PhpVersion, QueueDriver
from slemp.core.models.receipt import Receipt
from slemp.core.models.step import Step, StepContext, StepResult

__all__ = [
    # config.py
    "ConfigurationRecord",
    "PhpVersion",
    "QueueDriver",
    # receipt.py
    "Receipt",
    # step.py
    "Step",
    "StepContext",
    "StepResult",
]

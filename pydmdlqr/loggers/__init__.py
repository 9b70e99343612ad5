# pydmdlqr/loggers/__init__.py
from .runtime_banner import runtime_banner
from .tolerances import TolerancePolicy
from .ledger import start_ledger, attach_tolerances, log_approx, log_warning
from .seeding import SeedPolicy

__all__ = [
    "runtime_banner",
    "TolerancePolicy",
    "start_ledger",
    "attach_tolerances",
    "log_approx",
    "log_warning",
    "SeedPolicy",
]

"""Employee Dashboard package.

Feature modules (employees, departments, tasks, attendance, reports, ...) each
carry a thin Flask controller over a service layer and a repository layer.
"""

from .main import create_app

__all__ = ["create_app"]

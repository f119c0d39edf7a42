import os


def get_settings_module() -> str:
    # APP_ENV chọn module cấu hình, mặc định là 'development'
    env = os.getenv("APP_ENV", "development").lower()

    if env in {"prod", "production"}:
        return "employee_dashboard.config.production"

    if env in {"test", "testing"}:
        return "employee_dashboard.config.testing"

    return "employee_dashboard.config.development"

from __future__ import annotations

from sqlalchemy.engine import make_url

from employee_dashboard import create_app
from employee_dashboard.database import bootstrap


def main() -> None:
    app = create_app(AUTO_INIT_DB=True, AUTO_SEED_DB=False)
    uri = app.config["SQLALCHEMY_DATABASE_URI"]
    with app.app_context():
        bootstrap.seed_demo_data()
    print(
        "OK: Seeded database -> "
        f"{make_url(uri).render_as_string(hide_password=True)} "
        f"(login with any demo account, password '{bootstrap.DEMO_PASSWORD}')"
    )


if __name__ == "__main__":
    main()

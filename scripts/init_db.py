from __future__ import annotations

from sqlalchemy.engine import make_url

from employee_dashboard import create_app
from employee_dashboard.database import bootstrap
from employee_dashboard.extensions import db


def main() -> None:
    app = create_app(AUTO_INIT_DB=False, AUTO_SEED_DB=False)
    uri = app.config["SQLALCHEMY_DATABASE_URI"]
    with app.app_context():
        bootstrap.create_schema(uri)
    print(
        "OK: Created schema -> "
        f"{make_url(uri).render_as_string(hide_password=True)} (tables={len(db.metadata.tables)})"
    )


if __name__ == "__main__":
    main()

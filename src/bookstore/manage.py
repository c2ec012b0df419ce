"""Bookstore management CLI.

Creates and drops the database schema, and bootstraps admin accounts.

Usage:
    python -m bookstore.manage setup-db
    python -m bookstore.manage drop-db
    python -m bookstore.manage create-admin --email admin@example.com --username admin \
        --full-name "Site Admin" --password s3cret!
"""

import argparse
import sys

from bookstore.accounts.admin.admin import AdminLevel, Department


def _initialized_domain():
    from bookstore.domain import init_domain

    return init_domain()


def setup_database():
    from bookstore.utils.db import setup_db

    domain = _initialized_domain()
    print("Creating bookstore database schema...")
    setup_db(domain)
    print("Done.")


def drop_database():
    from bookstore.utils.db import drop_db

    domain = _initialized_domain()
    print("Dropping bookstore database schema...")
    drop_db(domain)
    print("Done.")


def create_admin(username, email, password, full_name, level, department):
    from bookstore.accounts.account.registration import CreateAdmin

    domain = _initialized_domain()
    with domain.domain_context():
        user_id = domain.process(
            CreateAdmin(
                username=username,
                email=email,
                password=password,
                full_name=full_name,
                level=level,
                department=department,
            ),
            asynchronous=False,
        )
    print(f"Admin account created: {email} (user id {user_id})")
    return user_id


def main(argv=None):
    parser = argparse.ArgumentParser(description="Bookstore management")
    subparsers = parser.add_subparsers(dest="command", required=True)

    subparsers.add_parser("setup-db", help="Create all database tables")
    subparsers.add_parser("drop-db", help="Drop all database tables")

    admin_parser = subparsers.add_parser("create-admin", help="Create an admin account")
    admin_parser.add_argument("--username", required=True)
    admin_parser.add_argument("--email", required=True)
    admin_parser.add_argument("--password", required=True)
    admin_parser.add_argument("--full-name", required=True)
    admin_parser.add_argument(
        "--level",
        choices=[level.value for level in AdminLevel],
        default=AdminLevel.SUPER_ADMIN.value,
    )
    admin_parser.add_argument("--department", choices=[d.value for d in Department])

    args = parser.parse_args(argv)

    if args.command == "setup-db":
        setup_database()
    elif args.command == "drop-db":
        drop_database()
    elif args.command == "create-admin":
        create_admin(args.username, args.email, args.password, args.full_name, args.level, args.department)


if __name__ == "__main__":
    sys.exit(main())

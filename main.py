#!/usr/bin/env python3
"""
ProjectDesk -- administrative command line.

Usage:
  python main.py create-user --email ada@example.com --name "Ada Lovelace" --role admin
  python main.py create-user --email dev@example.com --name "Dev" --role developer --password 'S3cure!pass'
  python main.py generate-password
  python main.py generate-password --length 24
  python main.py check-password 'hunter2'
  python main.py validate-config

Configuration is read from the environment / .env exactly as the API reads
it (core.config.Settings). create-user writes to DATABASE_URL.
"""

import argparse
import sys
from typing import Optional

from pydantic import ValidationError as SettingsValidationError

from auth.models import NewUser, Role
from auth.passwords import check_password_strength, generate_random_password
from auth.service import build_auth_service
from auth.store import UserStore
from core.config import Settings, get_settings
from core.errors import AppError


def cmd_create_user(args: argparse.Namespace) -> int:
    settings = get_settings()
    password: Optional[str] = args.password
    generated = password is None
    if generated:
        password = generate_random_password(args.length)

    store = UserStore(settings.database_url)
    try:
        service = build_auth_service(settings, store)
        user = service.register(NewUser(email=args.email, name=args.name, password=password, role=args.role))
    except AppError as exc:
        print(f"  [!] {exc.message}")
        details = (exc.details or {}).get("errors", [])
        for line in details:
            print(f"      - {line}")
        return 1
    finally:
        store.close()

    print(f"  Created {user.role.value} {user.email} (id {user.id})")
    if generated:
        print(f"  Generated password: {password}")
        print("  Store it now -- it is not recoverable.")
    return 0


def cmd_generate_password(args: argparse.Namespace) -> int:
    try:
        print(generate_random_password(args.length))
    except ValueError as exc:
        print(f"  [!] {exc}")
        return 1
    return 0


def cmd_check_password(args: argparse.Namespace) -> int:
    report = check_password_strength(args.password)
    if report.is_valid:
        print("  Password meets the strength policy.")
        return 0
    print("  Password does not meet requirements:")
    for line in report.errors:
        print(f"    - {line}")
    return 1


def cmd_validate_config(args: argparse.Namespace) -> int:
    try:
        settings = Settings()
    except SettingsValidationError as exc:
        print("  [!] Configuration is invalid:")
        for err in exc.errors():
            print(f"    - {err.get('msg', err)}")
        return 1

    print("\nProjectDesk configuration")
    print("─" * 40)
    print(f"  Mode:              {'production' if settings.is_production else 'development'}")
    print(f"  Database:          {settings.database_url}")
    print(f"  Token lifetime:    {settings.token_expires_in} ({settings.token_lifetime_seconds}s)")
    print(f"  bcrypt rounds:     {settings.bcrypt_rounds}")
    print(f"  Secret key:        set ({len(settings.secret_key)} chars)")
    print(f"  Rate limiting:     {'enabled' if settings.rate_limit_enabled else 'disabled'}")
    print(f"  CORS origins:      {', '.join(settings.cors_origins) or '(none)'}")
    print(f"  Log level:         {settings.log_level}\n")
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="projectdesk",
        description="ProjectDesk administrative tasks.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    sub = parser.add_subparsers(dest="command", metavar="COMMAND")

    create = sub.add_parser("create-user", help="Register a user directly in the database")
    create.add_argument("--email", required=True)
    create.add_argument("--name", required=True)
    create.add_argument("--role", required=True, choices=[r.value for r in Role])
    create.add_argument("--password", help="Omit to generate a strong random password")
    create.add_argument("--length", type=int, default=16, help="Generated password length (default: 16)")
    create.set_defaults(func=cmd_create_user)

    gen = sub.add_parser("generate-password", help="Print a random password that passes the policy")
    gen.add_argument("--length", type=int, default=12, help="Password length (default: 12)")
    gen.set_defaults(func=cmd_generate_password)

    check = sub.add_parser("check-password", help="Check a password against the strength policy")
    check.add_argument("password")
    check.set_defaults(func=cmd_check_password)

    validate = sub.add_parser("validate-config", help="Load settings and report the effective configuration")
    validate.set_defaults(func=cmd_validate_config)

    return parser


def main(argv: Optional[list[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    if not getattr(args, "func", None):
        parser.print_help()
        return 0
    return args.func(args)


if __name__ == "__main__":
    sys.exit(main())

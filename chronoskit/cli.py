# chronoskit/cli.py
import argparse
import getpass
import os
import sys
from datetime import datetime
from chronoskit.config import Config
from chronoskit.exceptions import GatewayError
from chronoskit.gateway import DocumentGateway
from chronoskit.logging import setup_logging
from chronoskit.models.row_set import RowSet
from chronoskit.profile import GatewayProfile
import logging

logger = logging.getLogger(__name__)


def load_profile(env_file: str) -> GatewayProfile:
    """Load the profile from an .env file if it exists, else from the environment."""
    if os.path.exists(env_file):
        return GatewayProfile.from_env_file(env_file)
    return GatewayProfile.from_environ()


def password_for(args, user: str) -> str:
    return args.password if args.password is not None else getpass.getpass(f"Password for {user}: ")


def print_rows(row_set: RowSet):
    if not row_set:
        print("(no rows)")
        return
    print(row_set.to_dataframe().to_string(index=False))


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="chronoskit", description="Document access gateway")
    parser.add_argument("--env-file", default=".env", help="Path to .env file with CHRONOS_PROVIDER and CHRONOS_CONNECTION_STRING")
    parser.add_argument("--log-level", default="WARNING", help="Logging level")
    parser.add_argument("--log-file", help="Optional log file")
    subparsers = parser.add_subparsers(dest="command", help="Available commands")
    subparsers.required = True

    subparsers.add_parser("test-connection", help="Check that the backend is reachable")

    def with_user(name, help_text, doc=False):
        sub = subparsers.add_parser(name, help=help_text)
        if doc:
            sub.add_argument("--doc-id", type=int, required=True, help="Document id")
        sub.add_argument("--user", required=True, help="Username")
        sub.add_argument("--password", help="Password (prompted if omitted)")
        return sub

    scan_parser = subparsers.add_parser("scan-docs", help="Attributes of a document at a point in time")
    scan_parser.add_argument("--doc-id", type=int, required=True, help="Document id")
    scan_parser.add_argument("--time", type=datetime.fromisoformat, default=None,
                             help="ISO timestamp, e.g. 2024-01-02T03:04:05.123456 (default: now)")

    with_user("list-docs", "Documents visible to a user")
    with_user("list-all-docs", "All documents (admin)")
    with_user("list-users", "All users (admin)")
    with_user("list-lessees", "Lessees of a document", doc=True)
    with_user("insert-doc", "Create a document owned by the user")
    with_user("check-credentials", "Validate a username and password")

    lease_parser = with_user("lease", "Lease a document to another user", doc=True)
    lease_parser.add_argument("--lessee", required=True, help="Username receiving access")

    create_user_parser = with_user("create-user", "Create a user")
    create_user_parser.add_argument("--name", required=True, help="New username")
    create_user_parser.add_argument("--new-password", help="Password of the new user (prompted if omitted)")
    create_user_parser.add_argument("--admin", action="store_true", help="Grant admin rights")

    with_user("get-name", "Name of a document", doc=True)
    with_user("get-scheme-id", "Scheme id of a document", doc=True)
    with_user("has-shadow", "Whether a document is derived from another one", doc=True)

    def with_attribute(name, help_text, value=True, link=True):
        sub = with_user(name, help_text, doc=True)
        sub.add_argument("--name", required=True, help="Attribute name")
        if value:
            sub.add_argument("--value", required=True, help="Attribute value")
        if link:
            sub.add_argument("--link", action="store_true", help="Value is a link to another document")
        return sub

    with_attribute("set-attr", "Replace the value of an attribute")
    with_attribute("reset-attr", "Clear an attribute", value=False, link=False)
    with_attribute("add-member", "Add a member to a multi-valued attribute")
    with_attribute("remove-member", "Remove a member from a multi-valued attribute", link=False)

    is_admin_parser = subparsers.add_parser("is-admin", help="Whether a user has admin rights")
    is_admin_parser.add_argument("--user", required=True, help="Username")
    is_creator_parser = subparsers.add_parser("is-creator", help="Whether a user created a document")
    is_creator_parser.add_argument("--doc-id", type=int, required=True, help="Document id")
    is_creator_parser.add_argument("--user", required=True, help="Username")
    return parser


def run(gateway: DocumentGateway, args) -> None:
    if args.command == "test-connection":
        gateway.test_connection()
        print(f"Connection OK: {Config.describe(gateway.profile)}")
    elif args.command == "scan-docs":
        print_rows(gateway.scan_documents(args.doc_id, args.time or datetime.now()))
    elif args.command == "list-docs":
        print_rows(gateway.list_documents(args.user, password_for(args, args.user)))
    elif args.command == "list-all-docs":
        print_rows(gateway.list_all_documents(args.user, password_for(args, args.user)))
    elif args.command == "list-users":
        print_rows(gateway.list_users(args.user, password_for(args, args.user)))
    elif args.command == "list-lessees":
        print_rows(gateway.list_lessees(args.doc_id, args.user, password_for(args, args.user)))
    elif args.command == "insert-doc":
        print(gateway.insert_document(args.user, password_for(args, args.user)))
    elif args.command == "check-credentials":
        gateway.check_credentials(args.user, password_for(args, args.user))
        print("Credentials OK")
    elif args.command == "lease":
        gateway.create_lease(args.doc_id, args.user, password_for(args, args.user), args.lessee)
        print(f"Leased document {args.doc_id} to {args.lessee}")
    elif args.command == "create-user":
        creator_pwd = password_for(args, args.user)
        new_pwd = args.new_password if args.new_password is not None else getpass.getpass(f"Password for {args.name}: ")
        print(gateway.create_user(args.name, new_pwd, args.admin, args.user, creator_pwd))
    elif args.command == "get-name":
        print(gateway.get_name(args.doc_id, args.user, password_for(args, args.user)))
    elif args.command == "get-scheme-id":
        print(gateway.get_scheme_id(args.doc_id, args.user, password_for(args, args.user)))
    elif args.command == "has-shadow":
        print(gateway.has_shadow(args.doc_id, args.user, password_for(args, args.user)))
    elif args.command == "set-attr":
        gateway.set_attribute(args.doc_id, args.name, args.value, args.link, args.user, password_for(args, args.user))
        print(f"Set {args.name} on document {args.doc_id}")
    elif args.command == "reset-attr":
        gateway.reset_attribute(args.doc_id, args.name, args.user, password_for(args, args.user))
        print(f"Reset {args.name} on document {args.doc_id}")
    elif args.command == "add-member":
        gateway.insert_attribute_member(args.doc_id, args.name, args.value, args.link, args.user,
                                        password_for(args, args.user))
        print(f"Added {args.value!r} to {args.name} on document {args.doc_id}")
    elif args.command == "remove-member":
        gateway.remove_attribute_member(args.doc_id, args.name, args.value, args.user, password_for(args, args.user))
        print(f"Removed {args.value!r} from {args.name} on document {args.doc_id}")
    elif args.command == "is-admin":
        print(gateway.is_admin(args.user))
    elif args.command == "is-creator":
        print(gateway.is_creator(args.doc_id, args.user))
    else:
        raise ValueError(f"Unknown command: {args.command}")


def main(argv=None) -> int:
    args = build_parser().parse_args(argv)
    setup_logging(args.log_file, args.log_level)
    try:
        gateway = DocumentGateway.from_profile(load_profile(args.env_file))
        run(gateway, args)
    except (GatewayError, ValueError, FileNotFoundError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())

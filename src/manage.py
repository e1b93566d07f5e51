"""Checkout management CLI.

Usage:
    python src/manage.py setup-db                       # Create all tables
    python src/manage.py drop-db                        # Drop all tables
    python src/manage.py reap-orders [--older-than 24]  # Retire unpaid online orders
"""

import argparse
import sys


def setup_database():
    from checkout.domain import checkout
    from checkout.utils.db import setup_db

    print("Initializing checkout domain...")
    checkout.init()
    print("Creating checkout database schema...")
    setup_db(checkout)
    print("Done.")


def drop_database():
    from checkout.domain import checkout
    from checkout.utils.db import drop_db

    print("Initializing checkout domain...")
    checkout.init()
    print("Dropping checkout database schema...")
    drop_db(checkout)
    print("Done.")


def reap_orders(older_than_hours=None):
    from checkout.domain import checkout
    from checkout.order.abandonment import ReapAbandonedOrders
    from checkout.utils.logging import configure_logging

    configure_logging()
    checkout.init()
    with checkout.domain_context():
        reaped = checkout.process(ReapAbandonedOrders(older_than_hours=older_than_hours), asynchronous=False)
    print(f"Reaped {reaped or 0} abandoned order(s).")
    return reaped or 0


def main():
    parser = argparse.ArgumentParser(description="Checkout management")
    subparsers = parser.add_subparsers(dest="command", required=True)

    subparsers.add_parser("setup-db", help="Create all database tables")
    subparsers.add_parser("drop-db", help="Drop all database tables")

    reap_parser = subparsers.add_parser("reap-orders", help="Retire online orders whose payment never arrived")
    reap_parser.add_argument(
        "--older-than",
        type=int,
        dest="older_than_hours",
        default=None,
        help="Age threshold in hours (default: ABANDONED_ORDER_HOURS)",
    )

    args = parser.parse_args()

    if args.command == "setup-db":
        setup_database()
    elif args.command == "drop-db":
        drop_database()
    elif args.command == "reap-orders":
        reap_orders(args.older_than_hours)
    else:
        parser.print_help()
        sys.exit(1)


if __name__ == "__main__":
    main()

"""Storefront management CLI.

Usage:
    python src/manage.py setup-db                      # Create all tables
    python src/manage.py drop-db                       # Drop all tables
    python src/manage.py load-products products.json   # Add catalogue products
"""

import argparse
import json
import sys


def _domain():
    from storefront.domain import storefront

    storefront.init()
    return storefront


def setup_database():
    from storefront.utils.db import setup_db

    domain = _domain()
    print("Creating storefront database schema...")
    setup_db(domain)
    print("Done.")


def drop_database():
    from storefront.utils.db import drop_db

    domain = _domain()
    print("Dropping storefront database schema...")
    drop_db(domain)
    print("Done.")


def load_products(path):
    """Add every product in a JSON list; products whose slug exists are skipped."""
    from protean.exceptions import ValidationError

    from storefront.catalogue.management import AddProduct

    domain = _domain()
    with open(path, encoding="utf-8") as handle:
        products = json.load(handle)

    added = 0
    with domain.domain_context():
        for product in products:
            try:
                domain.process(
                    AddProduct(
                        slug=product["slug"],
                        name=product["name"],
                        brand=product.get("brand"),
                        category=product.get("category"),
                        description=product.get("description"),
                        gross_price=product["grossPrice"],
                        tax_rate=product["taxRate"],
                        available=product.get("available", True),
                        delivery_methods=json.dumps(product.get("deliveryMethods", [])),
                        delivery_costs=json.dumps(product.get("deliveryCosts", {})),
                        max_zone=product.get("maxZone", 0),
                    ),
                    asynchronous=False,
                )
                added += 1
            except ValidationError as exc:
                print(f"  skipped {product.get('slug')}: {exc.messages}")

    print(f"Added {added} of {len(products)} products.")


def main():
    parser = argparse.ArgumentParser(description="Storefront management")
    subparsers = parser.add_subparsers(dest="command", required=True)

    subparsers.add_parser("setup-db", help="Create all database tables")
    subparsers.add_parser("drop-db", help="Drop all database tables")
    load_parser = subparsers.add_parser("load-products", help="Add products from a JSON file")
    load_parser.add_argument("path", help="JSON list of products (camelCase keys)")

    args = parser.parse_args()

    if args.command == "setup-db":
        setup_database()
    elif args.command == "drop-db":
        drop_database()
    elif args.command == "load-products":
        load_products(args.path)
    else:
        parser.print_help()
        sys.exit(1)


if __name__ == "__main__":
    main()

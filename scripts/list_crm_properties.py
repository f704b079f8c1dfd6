#!/usr/bin/env python3
"""List the custom HubSpot contact properties the form sync writes.

These must be created in HubSpot (Settings > Properties > Contact
Properties) before the first sync, otherwise HubSpot rejects the update.

Usage:
    python scripts/list_crm_properties.py
    python scripts/list_crm_properties.py --json
    python scripts/list_crm_properties.py --form-type booking

Exit code 0 on success, 1 if --form-type is unknown.
"""

import argparse
import json
import sys

from src.leadcapture.crm.property_map import FormType, get_required_custom_properties


def print_table(properties: list) -> None:
    """Print a formatted table of properties."""
    header = f"{'NAME':<25} {'TYPE':<10} {'FORM':<12} {'DESCRIPTION'}"
    separator = "-" * 90
    print()
    print(separator)
    print(header)
    print(separator)
    for prop in properties:
        print(f"{prop['name']:<25} {prop['type']:<10} {prop['form_type']:<12} {prop['description']}")
    print(separator)
    print(f"{len(properties)} properties")
    print()


def main() -> None:
    parser = argparse.ArgumentParser(
        description="List custom HubSpot contact properties required by the form sync"
    )
    parser.add_argument(
        "--json",
        action="store_true",
        help="Print JSON instead of a table",
    )
    parser.add_argument(
        "--form-type",
        help="Only list properties for one form (booking, calculator, career, partner)",
    )
    args = parser.parse_args()

    properties = get_required_custom_properties()

    if args.form_type:
        try:
            label = FormType(args.form_type.lower()).value.capitalize()
        except ValueError:
            print(f"Unknown form type: {args.form_type}", file=sys.stderr)
            sys.exit(1)
        properties = [p for p in properties if p["form_type"] == label]

    if args.json:
        print(json.dumps(properties, indent=2, ensure_ascii=False))
    else:
        print_table(properties)


if __name__ == "__main__":
    main()

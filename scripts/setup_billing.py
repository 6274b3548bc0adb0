#!/usr/bin/env python3
"""
Set up billing for a fresh Stripe account.

Drops and recreates the database tables, creates any catalog plans missing
from the Stripe account and writes the plans table. Same as
`flask --app typographic.main setup`.
"""

import sys
from pathlib import Path

# Add project root to path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from typographic.errors import TypographicError
from typographic.factory import create_app
from typographic.cli import run_setup


def main():
    print("Setting up Typographic billing...")

    app = create_app()

    try:
        summary = run_setup(app)
    except TypographicError as e:
        print(f"[ERROR] {e.message}")
        return 1

    print(f"[OK] Created tables: {', '.join(summary['tables'])}")
    if summary['created']:
        print(f"[OK] Created plans on Stripe: {', '.join(summary['created'])}")
    else:
        print("[OK] All plans already exist on Stripe")
    print(f"[OK] Synced {len(summary['plans'])} plans to the local database")
    return 0


if __name__ == "__main__":
    sys.exit(main())

#!/usr/bin/env python
"""Config admin CLI: validate, show and export schemas of bot config documents.

Usage (examples):

python scripts/config_admin.py --config-dir config validate
python scripts/config_admin.py --config-dir config show email_alerts
python scripts/config_admin.py --config-dir config export-schema engine engine.schema.json
"""
import argparse
import sys
from pathlib import Path as _Path
# Ensure project root is on sys.path so `botcore` package is importable when running as a script.
sys.path.insert(0, str(_Path(__file__).resolve().parents[1]))

import yaml

from botcore.documents import DocumentType
from botcore.errors import BotConfigError
from botcore.logging_setup import logger
from botcore.store import ConfigStore


def validate_all(store: ConfigStore) -> int:
    failures = 0
    print("Config documents:")
    for doc_type in DocumentType:
        path = store.path_for(doc_type)
        try:
            store.load(doc_type)
            print(f"  {doc_type.value}: OK ({path})")
        except BotConfigError as e:
            failures += 1
            print(f"  {doc_type.value}: FAILED - {e}")
    return 1 if failures else 0


def show(store: ConfigStore, doc_type: DocumentType) -> int:
    try:
        external = store.get(doc_type)
    except BotConfigError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1
    print(yaml.safe_dump(external, default_flow_style=False, sort_keys=False), end="")
    return 0


def export_schema(store: ConfigStore, doc_type: DocumentType, output: str) -> int:
    try:
        store.codec.write_schema(doc_type, output)
    except BotConfigError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1
    print(f"Wrote {doc_type.value} schema to {output}")
    return 0


def main(argv=None) -> int:
    doc_choices = [t.value for t in DocumentType]

    parser = argparse.ArgumentParser()
    parser.add_argument("--config-dir", required=True, help="Directory holding the config documents")
    parser.add_argument("--format", choices=["yaml", "json"], default="yaml", help="Document file format")
    parser.add_argument("--verbose", action="store_true", help="Show log output on stderr")
    sub = parser.add_subparsers(dest="cmd")

    sub.add_parser("validate")
    show_p = sub.add_parser("show")
    show_p.add_argument("document", choices=doc_choices)
    schema_p = sub.add_parser("export-schema")
    schema_p.add_argument("document", choices=doc_choices)
    schema_p.add_argument("output", help="Path of the JSON Schema file to write")

    args = parser.parse_args(argv)
    if not args.verbose:
        logger.remove()

    store = ConfigStore(args.config_dir, file_format=args.format)

    if args.cmd == "validate":
        return validate_all(store)
    if args.cmd == "show":
        return show(store, DocumentType(args.document))
    if args.cmd == "export-schema":
        return export_schema(store, DocumentType(args.document), args.output)

    parser.print_help()
    return 0


if __name__ == '__main__':
    sys.exit(main())

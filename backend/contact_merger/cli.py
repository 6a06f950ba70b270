"""
Command-line interface for the Contact Merger.

Usage:
    contact-merger merge <file> --profile=<profile> [--output=<output>] [--format=<format>]
    contact-merger merge <file> --group-by=<field> --code-field=<field> --destination-field=<field>
                                [--label=<field> ...] [--variable=<field> ...]
    contact-merger merge-dir <input_dir> <output_dir> [--profile=<profile>]
    contact-merger list-profiles
    contact-merger validate <file> --profile=<profile>
    contact-merger serve [--host=<host>] [--port=<port>]

Examples:
    contact-merger merge contacts.csv --profile=Contacts --output=contacts.json
    contact-merger merge contacts.csv --group-by=name --code-field=code \\
        --destination-field=destination --label=code --label=destination --variable=name
    contact-merger serve --port=8000
"""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

from pydantic import ValidationError


def main(argv: list[str] | None = None):
    """Main CLI entry point."""
    parser = argparse.ArgumentParser(
        description="Contact Merger",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    common = argparse.ArgumentParser(add_help=False)
    common.add_argument("--config", help="Path to config directory")
    common.add_argument(
        "--log-level",
        type=str.upper,
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        help="Override configured log level",
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # Merge single file command
    merge_parser = subparsers.add_parser(
        "merge", parents=[common], help="Merge contacts from a single file"
    )
    merge_parser.add_argument("file", help="Input file (CSV or Excel)")
    merge_parser.add_argument("--profile", help="Profile name")
    merge_parser.add_argument("--group-by", help="Field to group records by")
    merge_parser.add_argument("--code-field", help="Field holding destination codes")
    merge_parser.add_argument("--destination-field", help="Field holding destinations")
    merge_parser.add_argument(
        "--label", action="append", default=[], help="Label field (repeatable)"
    )
    merge_parser.add_argument(
        "--variable", action="append", default=[], help="Variable field (repeatable)"
    )
    merge_parser.add_argument("--output", help="Output file path (stdout if omitted)")
    merge_parser.add_argument("--format", choices=["json", "yaml"], help="Output format")

    # Merge directory command
    dir_parser = subparsers.add_parser(
        "merge-dir", parents=[common], help="Merge all files in a directory"
    )
    dir_parser.add_argument("input_dir", help="Input directory with CSV/Excel files")
    dir_parser.add_argument("output_dir", help="Output directory for merged files")
    dir_parser.add_argument("--profile", help="Use this profile for every file")

    subparsers.add_parser(
        "list-profiles", parents=[common], help="List available profiles"
    )

    validate_parser = subparsers.add_parser(
        "validate", parents=[common], help="Check a file's columns against a profile"
    )
    validate_parser.add_argument("file", help="Input file to validate")
    validate_parser.add_argument("--profile", required=True, help="Profile name")

    serve_parser = subparsers.add_parser(
        "serve", parents=[common], help="Start the API server"
    )
    serve_parser.add_argument("--host", default="0.0.0.0", help="Host to bind to")
    serve_parser.add_argument("--port", type=int, default=8000, help="Port to listen on")

    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        sys.exit(1)

    commands = {
        "merge": cmd_merge,
        "merge-dir": cmd_merge_directory,
        "list-profiles": cmd_list_profiles,
        "validate": cmd_validate,
        "serve": cmd_serve,
    }
    commands[args.command](args)


def _load_config(args):
    """Create the config loader and configure logging."""
    from .core.config_loader import ConfigLoader

    config_loader = ConfigLoader(args.config)
    try:
        log_config = config_loader.global_config.logging
    except ValidationError as e:
        print(f"Error: Invalid global config: {e}")
        sys.exit(1)

    logging.basicConfig(
        level=args.log_level or log_config.level,
        format=log_config.format,
    )
    return config_loader


def _resolve_selectors(args, config_loader):
    """Build selectors from --profile or explicit field options."""
    from .core.config_models import Selectors

    if args.profile:
        profile = config_loader.get_profile(args.profile)
        if not profile:
            print(f"Error: Profile '{args.profile}' not found")
            sys.exit(1)
        return profile.profile.name, profile.selectors

    try:
        selectors = Selectors(
            group_by_field=args.group_by,
            code_field=args.code_field,
            destination_field=args.destination_field,
            label_fields=args.label,
            variable_fields=args.variable,
        )
    except ValidationError as e:
        print("Error: --profile or --group-by, --code-field and --destination-field are required")
        print(e)
        sys.exit(1)
    return "adhoc", selectors


def _report(proc_result) -> None:
    print(
        f"Merged: {proc_result.input_rows} rows → {proc_result.group_count} contacts"
        f" ({len(proc_result.skipped_rows)} skipped)"
    )
    if proc_result.warning_count > 0:
        print(f"Warnings: {proc_result.warning_count}")
        for warning in proc_result.warnings[:5]:
            print(f"  - Row {warning.row_index}: {warning.message}")


def cmd_merge(args):
    """Merge a single file."""
    from .core.merge_engine import MergeEngine
    from .io.file_reader import FileReader
    from .io.file_writer import FileWriter

    config_loader = _load_config(args)
    global_config = config_loader.global_config
    profile_name, selectors = _resolve_selectors(args, config_loader)

    file_path = Path(args.file)
    try:
        read_results = FileReader().read_file(file_path)
    except (ValueError, OSError) as e:
        print(f"Error: {e}")
        sys.exit(1)

    records = [record for result in read_results for record in result.records]

    engine = MergeEngine(global_config)
    result, proc_result = engine.process(
        records, selectors, profile_name=profile_name, source_file=str(file_path)
    )

    writer = FileWriter(global_config.output)
    if args.output:
        output = writer.write(result, args.output, args.format)
        _report(proc_result)
        print(f"Output: {output}")
    else:
        sys.stdout.write(writer.dumps(result, args.format))


def cmd_merge_directory(args):
    """Merge every file in a directory."""
    from .core.merge_engine import MergeEngine
    from .io.file_reader import FileReader
    from .io.file_writer import FileWriter
    from .io.profile_detector import ProfileDetector

    config_loader = _load_config(args)
    global_config = config_loader.global_config

    profiles = config_loader.load_all_profiles()
    if not profiles:
        print("Error: No profile configurations found")
        sys.exit(1)

    print(f"Loaded {len(profiles)} profile configurations")

    detector = ProfileDetector(profiles)
    reader = FileReader()
    writer = FileWriter(global_config.output)
    engine = MergeEngine(global_config)

    input_dir = Path(args.input_dir)
    output_dir = Path(args.output_dir)
    output_dir.mkdir(parents=True, exist_ok=True)

    files = sorted(
        p for p in input_dir.iterdir()
        if p.suffix.lower() in FileReader.SUPPORTED_EXTENSIONS
    )
    print(f"Found {len(files)} files to merge")
    print("-" * 60)

    for file_path in files:
        profile_name = args.profile or detector.detect(file_path.name)
        if not profile_name:
            print(f"⚠ Skipping {file_path.name}: Could not detect profile")
            continue

        profile = profiles.get(profile_name)
        if not profile:
            print(f"⚠ Skipping {file_path.name}: No config for profile '{profile_name}'")
            continue

        print(f"Merging {file_path.name} with {profile_name}...")

        try:
            read_results = reader.read_file(file_path)
        except ValueError as e:
            print(f"  ✗ Error: {e}")
            continue

        records = [record for r in read_results for record in r.records]
        result, proc_result = engine.process(
            records, profile, source_file=str(file_path)
        )

        filename = writer.format_filename(profile_name, file_path.stem)
        writer.write(result, output_dir / filename)

        print(f"  ✓ {proc_result.input_rows} → {proc_result.group_count} contacts: {filename}")
        if proc_result.warning_count > 0:
            print(f"    ({proc_result.warning_count} warnings)")

    print("-" * 60)
    print("Done!")


def cmd_list_profiles(args):
    """List available profiles."""
    config_loader = _load_config(args)
    profiles = config_loader.load_all_profiles()

    if not profiles:
        print("No profile configurations found")
        return

    print(f"Available profiles ({len(profiles)}):")
    print("-" * 60)

    for name, config in sorted(profiles.items()):
        status = "✓" if config.profile.enabled else "✗"
        selectors = config.selectors
        print(f"  {status} {name}")
        print(f"      Group by: {selectors.group_by_field}")
        print(f"      Destination: {selectors.code_field} / {selectors.destination_field}")
        print(f"      Labels: {', '.join(selectors.label_fields) or '-'}")
        print(f"      Variables: {', '.join(selectors.variable_fields) or '-'}")
        if config.profile.description:
            print(f"      Description: {config.profile.description}")
        print()


def cmd_validate(args):
    """Check a file's columns against a profile's selectors."""
    from .core.merge_engine import MergeEngine
    from .io.file_reader import FileReader

    config_loader = _load_config(args)
    profile = config_loader.get_profile(args.profile)

    if not profile:
        print(f"Error: Profile '{args.profile}' not found")
        sys.exit(1)

    file_path = Path(args.file)
    try:
        read_results = FileReader().read_file(file_path)
    except ValueError as e:
        print(f"Error: {e}")
        sys.exit(1)

    print(f"Validating {file_path.name} against {profile.profile.name}")
    print("-" * 60)

    for read_result in read_results:
        print(f"\nSheet: {read_result.sheet_name or 'main'}")
        print(f"Rows: {read_result.row_count}")
        print(f"Columns: {read_result.column_count}")

        warnings = MergeEngine.check_columns(read_result.columns, profile.selectors)
        if warnings:
            for warning in warnings:
                print(f"  ✗ {warning}")
        else:
            print("\n✓ All selector fields present")


def cmd_serve(args):
    """Start the API server."""
    import uvicorn
    from .api.main import create_app

    _load_config(args)
    app = create_app(args.config)
    print(f"Starting server on {args.host}:{args.port}")
    uvicorn.run(app, host=args.host, port=args.port)


if __name__ == "__main__":
    main()

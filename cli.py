"""
Command-Line Interface for SynthProof

Provides commands for:
- classify: Classify the columns of a CSV upload
- register: Register a dataset by its content fingerprint
- generate: Generate a committed synthetic table
- verify: Verify a claimed commitment
- export: Export a verifiable receipt
- config: Manage configurations

State is kept in JSON files under --runtime-dir so commands can be chained.
"""

import argparse
import sys
import logging
from pathlib import Path
from rich.console import Console
from rich.table import Table
from rich.progress import Progress, SpinnerColumn, TextColumn
from rich.panel import Panel
import json

from synthproof.config import ConfigLoader, get_default_config
from synthproof.exceptions import ValidationError
from synthproof.schema import ColumnClassifier
from synthproof.service import build_service
from synthproof.utils import FileHandler, PathManager, setup_logging

# Setup console
console = Console()


class CLI:
    """Main CLI class"""

    def __init__(self):
        self.parser = self._create_parser()
        self.config_loader = ConfigLoader()

    def _create_parser(self) -> argparse.ArgumentParser:
        """Create argument parser"""
        parser = argparse.ArgumentParser(
            description="SynthProof CLI",
            formatter_class=argparse.RawDescriptionHelpFormatter,
            epilog="""
Examples:
  # Inspect how the columns of an upload are classified
  python cli.py classify people.csv

  # Register the upload, then generate 500 rows with range generalization
  python cli.py register people.csv --user aleo1qxyz
  python cli.py generate <dataset_id> --input people.csv --rows 500 --ranges -o synth.csv

  # Verify and export
  python cli.py verify <generation_id> <synth_commitment>
  python cli.py export <generation_id> -o receipt.json

  # Use preset configuration
  python cli.py --preset strict generate <dataset_id> --input people.csv
            """
        )

        parser.add_argument(
            '--verbose', '-v',
            action='store_true',
            help='Enable verbose output'
        )
        parser.add_argument('--runtime-dir', default='.runtime', help='Directory holding the store files')
        parser.add_argument('--preset', '-p', help='Configuration preset')
        parser.add_argument('--config', '-c', help='Custom configuration file')

        subparsers = parser.add_subparsers(dest='command', help='Available commands')

        # Classify command
        classify_parser = subparsers.add_parser('classify', help='Classify the columns of a CSV file')
        classify_parser.add_argument('input', help='Input CSV file')
        classify_parser.add_argument('--output', '-o', help='Output classification file (JSON)')

        # Register command
        register_parser = subparsers.add_parser('register', help='Register a dataset')
        register_parser.add_argument('input', help='Input CSV file')
        register_parser.add_argument('--user', '-u', required=True, help='Owner address')
        register_parser.add_argument('--type', '-t', dest='dataset_type', default='custom', help='Dataset type')

        # Generate command
        generate_parser = subparsers.add_parser('generate', help='Generate synthetic data')
        generate_parser.add_argument('dataset_id', help='Registered dataset id')
        generate_parser.add_argument('--input', '-i', help='Original CSV (headers and fingerprint only)')
        generate_parser.add_argument('--rows', '-n', type=int, help='Number of rows to generate')
        generate_parser.add_argument('--quality', '-q', help='Quality mode (fast, balanced, high)')
        generate_parser.add_argument('--format', '-f', dest='output_format', help='Output format (csv, json)')
        generate_parser.add_argument('--keep-sensitive', action='store_true', help='Do not suppress sensitive columns')
        generate_parser.add_argument('--ranges', action='store_true', help='Generalize numeric columns into ranges')
        generate_parser.add_argument('--exclude', '-x', action='append', default=[], help='Column to leave out (repeatable)')
        generate_parser.add_argument('--seed', '-s', type=int, help='Random seed for reproducibility')
        generate_parser.add_argument('--output', '-o', help='Output synthetic data file')

        # Verify command
        verify_parser = subparsers.add_parser('verify', help='Verify a claimed commitment')
        verify_parser.add_argument('generation_id', help='Generation id')
        verify_parser.add_argument('commitment', help='Claimed synthetic-output commitment')

        # Export command
        export_parser = subparsers.add_parser('export', help='Export a verifiable receipt')
        export_parser.add_argument('generation_id', help='Generation id')
        export_parser.add_argument('--output', '-o', help='Output receipt file (JSON)')

        # Config command
        config_parser = subparsers.add_parser('config', help='Manage configurations')
        config_subparsers = config_parser.add_subparsers(dest='config_command')

        # Config list
        config_subparsers.add_parser('list', help='List available presets')

        # Config show
        show_parser = config_subparsers.add_parser('show', help='Show preset configuration')
        show_parser.add_argument('preset', help='Preset name')

        # Config create
        create_parser = config_subparsers.add_parser('create', help='Create custom configuration')
        create_parser.add_argument('output', help='Output configuration file')

        return parser

    def run(self, args=None):
        """Run CLI"""
        args = self.parser.parse_args(args)

        # Setup logging
        log_level = logging.DEBUG if args.verbose else logging.WARNING
        setup_logging(level=log_level)

        # Execute command
        if args.command == 'classify':
            self.cmd_classify(args)
        elif args.command == 'register':
            self.cmd_register(args)
        elif args.command == 'generate':
            self.cmd_generate(args)
        elif args.command == 'verify':
            self.cmd_verify(args)
        elif args.command == 'export':
            self.cmd_export(args)
        elif args.command == 'config':
            self.cmd_config(args)
        else:
            self.parser.print_help()

    def _load_config(self, args):
        if args.preset:
            config = self.config_loader.load_preset(args.preset)
        else:
            config = get_default_config()

        # Config file keys override the preset
        if args.config:
            config = self.config_loader.merge_configs(config, self.config_loader.read_file(args.config))

        config.storage.backend = "json"
        config.storage.runtime_dir = str(PathManager.get_runtime_dir(args.runtime_dir))
        return config

    def _fail(self, args, error: Exception):
        console.print(f"[bold red]✗ Error:[/bold red] {str(error)}")
        if isinstance(error, ValidationError) and len(error.errors) > 1:
            for message in error.errors:
                console.print(f"  • {message}")
        if args.verbose:
            console.print_exception()
        sys.exit(1)

    def cmd_classify(self, args):
        """Classify the columns of an upload"""
        console.print(Panel.fit(
            "🔍 [bold]Column Classification[/bold]",
            border_style="cyan"
        ))

        try:
            config = self._load_config(args)
            profile = FileHandler.profile_upload(args.input)
            columns = ColumnClassifier(config.classifier).classify_or_fallback(profile.headers)

            table = Table(title=f"Columns of {profile.filename}", show_header=True)
            table.add_column("Column", style="cyan")
            table.add_column("Kind", style="yellow")
            table.add_column("Selected", style="green")

            for column in columns:
                table.add_row(column.name, column.kind.value, "✓" if column.selected else "✗")

            console.print(table)
            console.print(f"Rows: {profile.row_count:,}  Fingerprint: {profile.content_hash}")

            if args.output:
                with open(args.output, 'w') as f:
                    json.dump({
                        'filename': profile.filename,
                        'row_count': profile.row_count,
                        'content_hash': profile.content_hash,
                        'columns': [c.to_dict() for c in columns]
                    }, f, indent=2)

                console.print(f"\n✓ Classification saved to: {args.output}")

        except Exception as e:
            self._fail(args, e)

    def cmd_register(self, args):
        """Register a dataset"""
        console.print(Panel.fit(
            "📝 [bold]Dataset Registration[/bold]",
            border_style="blue"
        ))

        try:
            service = build_service(self._load_config(args))
            profile = FileHandler.profile_upload(args.input)
            console.print(f"✓ Fingerprinted {profile.filename}: {profile.content_hash}")

            result = service.register_dataset(
                user_address=args.user,
                filename=profile.filename,
                original_hash=profile.content_hash,
                column_count=profile.column_count,
                row_count=profile.row_count,
                dataset_type=args.dataset_type,
            )

            table = Table(title="Registration", show_header=True)
            table.add_column("Field", style="cyan")
            table.add_column("Value", style="green")

            table.add_row("Dataset ID", result.dataset_id)
            table.add_row("Commitment", result.commitment)
            table.add_row("Transaction", result.tx_id)
            table.add_row("Columns", str(profile.column_count))
            table.add_row("Rows", f"{profile.row_count:,}")

            console.print(table)
            console.print("\n[bold green]✓ Dataset registered![/bold green]")

        except Exception as e:
            self._fail(args, e)

    def cmd_generate(self, args):
        """Generate synthetic data"""
        console.print(Panel.fit(
            "🎲 [bold]Synthetic Data Generation[/bold]",
            border_style="blue"
        ))

        try:
            config = self._load_config(args)

            # Override with command-line arguments
            if args.seed is not None:
                config.generation.seed = args.seed

            service = build_service(config)

            headers = []
            original_hash = ""
            if args.input:
                profile = FileHandler.profile_upload(args.input)
                headers = profile.headers
                original_hash = profile.content_hash

            columns = ColumnClassifier(config.classifier).classify_or_fallback(headers)
            excluded = {name.strip().lower() for name in args.exclude}
            columns = [c.with_selected(c.selected and c.name not in excluded) for c in columns]

            request = {
                'dataset_id': args.dataset_id,
                'columns': [c.to_dict() for c in columns],
                'hide_sensitive': not args.keep_sensitive and config.privacy.hide_sensitive,
                'privacy_safe_ranges': args.ranges or config.privacy.privacy_safe_ranges,
                'synthetic_rows': args.rows if args.rows is not None else config.generation.default_rows,
                'output_format': (args.output_format if args.output_format is not None
                                  else config.generation.default_output_format),
                'quality_mode': args.quality if args.quality is not None else config.generation.default_quality_mode,
                'original_data_hash': original_hash,
            }

            with Progress(
                SpinnerColumn(),
                TextColumn("[progress.description]{task.description}"),
                console=console
            ) as progress:
                task = progress.add_task("Generating synthetic data...", total=None)
                response = service.generate(request)
                progress.update(task, completed=True)

            if args.output:
                FileHandler.write_table(response.synthetic_data, args.output, request['output_format'])
                console.print(f"✓ Saved synthetic data to: {args.output}")

            # Summary
            table = Table(title="Generation Summary", show_header=True)
            table.add_column("Metric", style="cyan")
            table.add_column("Value", style="green")

            table.add_row("Generation ID", response.generation_id)
            table.add_row("Rows Generated", f"{response.synthetic_data.row_count:,}")
            table.add_row("Columns Included", str(response.columns_included))
            table.add_row("Sensitive Removed", str(response.sensitive_removed))
            table.add_row("Quality Score", str(response.quality_score))
            table.add_row("Synth Commitment", response.synth_commitment)
            table.add_row("Proof Hash", response.proof_hash)
            table.add_row("Transaction", response.tx_id)
            table.add_row("Seed", str(config.generation.seed if config.generation.seed is not None else "Random"))

            console.print(table)

            if response.fully_persisted:
                console.print("\n[bold green]✓ Generation complete![/bold green]")
            else:
                console.print("\n[bold yellow]⚠ Generation stored with failed secondary writes:[/bold yellow]")
                for failure in response.secondary_failures:
                    console.print(f"  • {failure.operation}: {failure.error}")

        except Exception as e:
            self._fail(args, e)

    def cmd_verify(self, args):
        """Verify a claimed commitment"""
        console.print(Panel.fit(
            "✅ [bold]Proof Verification[/bold]",
            border_style="green"
        ))

        try:
            service = build_service(self._load_config(args))
            result = service.verify(args.generation_id, args.commitment)

            table = Table(title="Verification", show_header=True)
            table.add_column("Field", style="cyan")
            table.add_column("Value", style="green")

            table.add_row("Verified", "✓" if result.verified else "✗")
            table.add_row("Proof Hash", result.proof_hash)
            table.add_row("Quality Score", str(result.quality_score))
            table.add_row("Transaction", result.verification_tx_id or "-")

            console.print(table)

            if result.verified:
                console.print("\n[bold green]✓ Commitment matches the stored proof[/bold green]")
            else:
                console.print("\n[bold red]✗ Commitment does not match the stored proof[/bold red]")
                sys.exit(2)

        except Exception as e:
            self._fail(args, e)

    def cmd_export(self, args):
        """Export a receipt"""
        console.print(Panel.fit(
            "🧾 [bold]Receipt Export[/bold]",
            border_style="magenta"
        ))

        try:
            service = build_service(self._load_config(args))
            result = service.export(args.generation_id)

            if args.output:
                output = Path(args.output)
                output.parent.mkdir(parents=True, exist_ok=True)
                output.write_text(result.receipt.to_json())
                console.print(f"✓ Receipt saved to: {args.output}")
            else:
                console.print_json(data=result.receipt.to_dict())

            console.print(f"✓ Export recorded as {result.export_tx_id}")

        except Exception as e:
            self._fail(args, e)

    def cmd_config(self, args):
        """Manage configurations"""
        console.print(Panel.fit(
            "⚙️ [bold]Configuration Management[/bold]",
            border_style="magenta"
        ))

        try:
            if args.config_command == 'list':
                presets = self.config_loader.list_presets()

                table = Table(title="Available Presets", show_header=True)
                table.add_column("Preset", style="cyan")
                table.add_column("Description", style="white")

                descriptions = {
                    'default': 'Default configuration',
                    'strict': 'Suppression and range generalization with a SHA-256 digest',
                    'demo': 'Seeded, small, fast runs that keep sensitive columns'
                }

                for preset in presets:
                    desc = descriptions.get(preset, 'Custom preset')
                    table.add_row(preset, desc)

                console.print(table)

            elif args.config_command == 'show':
                config = self.config_loader.load_preset(args.preset)

                console.print(f"\n[bold]Preset: {args.preset}[/bold]\n")
                console.print_json(data=config.to_dict())

            elif args.config_command == 'create':
                config = get_default_config()
                self.config_loader.save_config(config, args.output)

                console.print(f"✓ Created configuration file: {args.output}")
                console.print("  Edit this file to customize settings")

            else:
                console.print("Use 'config list', 'config show <preset>', or 'config create <file>'")

        except Exception as e:
            self._fail(args, e)


def main():
    """CLI entry point"""
    cli = CLI()
    cli.run()


if __name__ == "__main__":
    main()

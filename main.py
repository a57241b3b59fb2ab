from argparse import ArgumentParser
import logging
from pathlib import Path
import sys

from common.config import get_log_level_descriptor, load_run_config, resolve
from common.error_manager import (
    ChartError,
    DashboardValidationError,
    ErrorManager,
)
from common.grafana_model import DashboardDecodeError
from exporter.manifest.manifest_exporter import (
    OUTPUT_FORMATS,
    ManifestExporter,
    encode_manifest,
)
from helm.renderer import render_templates
from helm.values import VALUES_FILE, load_values, validate_chart
from importer.chart.chart_importer import ChartImporter
from validator.dashboard_validator import validate_file

__version__ = "0.1.0"

logger = logging.getLogger(__name__)


def format_file_size(size: int) -> str:
    unit = 1024
    if size < unit:
        return f"{size} B"
    div, exp = unit, 0
    n = size // unit
    while n >= unit:
        div *= unit
        exp += 1
        n //= unit
    return f"{size / div:.1f} {'KMGTPE'[exp]}B"


def load_chart_values(chart_path):
    try:
        return load_values(Path(chart_path) / VALUES_FILE)
    except ChartError as e:
        raise ChartError(f"failed to load values.yaml: {e}") from e


def validate_dashboards(
    chart_path, check_chart=False, errors_csv=None, log_level=logging.INFO
):
    logger.info("Validating dashboard files...")

    if check_chart:
        validate_chart(chart_path)
        logger.info(f"Chart structure OK: {chart_path}")

    values = load_chart_values(chart_path)
    importer = ChartImporter(chart_path, values, log_level)
    error_manager = ErrorManager(logger)

    total_dashboards = 0
    for folder in importer.folders:
        logger.info(f"Checking folder: {folder}")
        for dashboard_file in importer.fetch_folder(folder):
            logger.info(f"Validating: {dashboard_file.name}")
            try:
                validate_file(dashboard_file.path)
            except (DashboardDecodeError, DashboardValidationError) as e:
                error_manager.add_error(dashboard_file.path, e)
            else:
                total_dashboards += 1

    failed_files = error_manager.failed_files
    print("\nValidation Summary:")
    print(f"   OK: Valid dashboards: {total_dashboards}")
    print(f"   ERROR: Validation errors: {len(failed_files)}")

    if errors_csv and (errors := error_manager.errors_csv()):
        Path(errors_csv).write_text(errors + "\n")
        logger.info(f"Wrote validation errors report: {errors_csv}")

    if failed_files:
        print("\nValidation Errors:")
        for path, error in failed_files.items():
            print(f"   - {path}: {error}")
        raise RuntimeError(f"validation failed with {len(failed_files)} errors")

    print("OK: All dashboards are valid!")


def list_dashboards(chart_path, log_level=logging.INFO):
    print("Dashboard Inventory:")

    values = load_chart_values(chart_path)
    importer = ChartImporter(chart_path, values, log_level)

    total_size = 0
    total_dashboards = 0
    for folder in importer.folders:
        print(f"\n{folder}/")
        for dashboard_file in importer.fetch_folder(folder):
            print(f"   {dashboard_file.name} ({format_file_size(dashboard_file.size)})")
            total_size += dashboard_file.size
            total_dashboards += 1

    print("\nSummary:")
    print(f"   Total dashboards: {total_dashboards}")
    print(f"   Total size: {format_file_size(total_size)}")


def generate_manifests(chart_path, output_format, namespace, log_level=logging.INFO):
    logger.info(f"Generating manifests for namespace: {namespace}")
    if output_format not in OUTPUT_FORMATS:
        raise ValueError(f"unsupported output format: {output_format}")

    values = load_chart_values(chart_path)
    dashboards = ChartImporter(chart_path, values, log_level).fetch_dashboards()
    manifest = ManifestExporter(values, namespace, log_level).export_dashboards(
        dashboards
    )
    sys.stdout.write(encode_manifest(manifest, output_format))


def render(chart_path, values_file, release_name, namespace, helm_binary="helm"):
    logger.info(f"Rendering templates for release: {release_name}")
    output = render_templates(
        chart_path, values_file, release_name, namespace, helm_binary=helm_binary
    )
    sys.stdout.write(output)


def parse_args(argv=None):
    parser = ArgumentParser(
        prog="dashboard-manager",
        description="Validate, list and render the Grafana dashboards of a Helm chart",
    )
    parser.add_argument("-c", "--config", help="Config file to use")
    parser.add_argument("--log-level", help="Log level name, default INFO")
    parser.add_argument(
        "--version", action="version", version=f"%(prog)s {__version__}"
    )
    commands = parser.add_subparsers(dest="command", required=True)

    validate = commands.add_parser(
        "validate", help="Validate dashboard JSON files and Helm chart"
    )
    validate.add_argument(
        "-c", "--chart-path", dest="chart_path", help="Path to the Helm chart directory"
    )
    validate.add_argument(
        "--check-chart",
        action="store_true",
        default=False,
        help="Also check Chart.yaml, values.yaml and templates/",
    )
    validate.add_argument(
        "--errors-csv", help="Write one CSV row per validation error to this file"
    )

    generate = commands.add_parser(
        "generate", help="Generate Kubernetes manifests from the Helm chart"
    )
    generate.add_argument(
        "-c", "--chart-path", dest="chart_path", help="Path to the Helm chart directory"
    )
    generate.add_argument("-o", "--output", help="Output format (yaml|json)")
    generate.add_argument("-n", "--namespace", help="Target namespace")

    list_ = commands.add_parser("list", help="List all dashboard files in the chart")
    list_.add_argument(
        "-c", "--chart-path", dest="chart_path", help="Path to the Helm chart directory"
    )

    template = commands.add_parser("template", help="Render Helm templates locally")
    template.add_argument(
        "-c", "--chart-path", dest="chart_path", help="Path to the Helm chart directory"
    )
    template.add_argument("-f", "--values", help="Path to values file")
    template.add_argument("-r", "--release", help="Release name")
    template.add_argument("-n", "--namespace", help="Target namespace")

    return parser.parse_args(argv)


def run(argv=None) -> int:
    args = parse_args(argv)
    try:
        run_config = load_run_config(args.config)
        log_level = get_log_level_descriptor(
            resolve(args.log_level, run_config, "log_level")
        )
    except (OSError, ValueError) as e:
        logging.basicConfig()
        logger.error(f"Invalid configuration: {e}")
        return 1

    logging.basicConfig(level=log_level)
    logger.setLevel(level=log_level)

    chart_path = resolve(args.chart_path, run_config, "chart_path")
    try:
        match args.command:
            case "validate":
                validate_dashboards(
                    chart_path,
                    check_chart=args.check_chart,
                    errors_csv=args.errors_csv,
                    log_level=log_level,
                )
            case "generate":
                generate_manifests(
                    chart_path,
                    resolve(args.output, run_config, "output"),
                    resolve(args.namespace, run_config, "namespace"),
                    log_level=log_level,
                )
            case "list":
                list_dashboards(chart_path, log_level=log_level)
            case "template":
                render(
                    chart_path,
                    resolve(args.values, run_config, "values"),
                    resolve(args.release, run_config, "release"),
                    resolve(args.namespace, run_config, "namespace"),
                    helm_binary=resolve(None, run_config, "helm_binary"),
                )
    except (ChartError, RuntimeError, ValueError, OSError) as e:
        logger.error(f"{args.command} failed: {e}")
        return 1
    return 0


def main():
    sys.exit(run())


if __name__ == "__main__":
    main()

import logging
import subprocess

from common.error_manager import HelmTemplateError

logger = logging.getLogger(__name__)


def build_template_args(chart_path, values_file, release_name, namespace) -> list:
    args = [
        "template",
        release_name,
        str(chart_path),
        "--namespace",
        namespace,
    ]
    if values_file:
        args += ["--values", str(values_file)]
    return args


def render_templates(
    chart_path, values_file, release_name, namespace, helm_binary="helm"
) -> str:
    """Runs `helm template` and returns its combined stdout/stderr."""
    cmd = [helm_binary] + build_template_args(
        chart_path, values_file, release_name, namespace
    )
    logger.debug(f"Running: {' '.join(cmd)}")
    try:
        result = subprocess.run(
            cmd,
            stdout=subprocess.PIPE,
            stderr=subprocess.STDOUT,
            text=True,
            encoding="utf-8",
            errors="replace",
        )
    except OSError as e:
        raise HelmTemplateError(f"helm template failed: {e}\nOutput: ") from e

    if result.returncode != 0:
        raise HelmTemplateError(
            f"helm template failed: exit status {result.returncode}\nOutput: {result.stdout}"
        )
    return result.stdout

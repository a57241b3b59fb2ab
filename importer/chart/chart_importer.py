import logging
from dataclasses import dataclass
from pathlib import Path

from common.error_manager import ChartError
from helm.values import DASHBOARDS_DIR, Values

from ..importer import Importer


@dataclass(frozen=True, repr=True)
class DashboardFile:
    path: Path
    folder: str
    name: str
    size: int

    @property
    def stem(self):
        return self.name[: -len(".json")]


class ChartImporter(Importer):
    """Finds the dashboard JSON files of the folders listed in values.yaml."""

    def __init__(self, chart_path, values: Values, log_level=logging.INFO):
        super().__init__(__name__, chart_path, log_level)
        self._values = values
        self._dashboards_path = Path(self.chart_path) / DASHBOARDS_DIR

    @property
    def folders(self) -> list:
        return list(self._values.dashboard_folders)

    def fetch_dashboards(self) -> list[DashboardFile]:
        dashboards = []
        for folder in self.folders:
            dashboards.extend(self.fetch_folder(folder))
        return dashboards

    def fetch_folder(self, folder) -> list[DashboardFile]:
        folder_path = self._dashboards_path / folder
        if not folder_path.exists():
            raise ChartError(
                f"failed to walk folder {folder}: no such file or directory: {folder_path}"
            )

        dashboards = []
        try:
            for path in self._walk(folder_path):
                dashboards.append(
                    DashboardFile(
                        path=path,
                        folder=folder,
                        name=path.name,
                        size=path.stat().st_size,
                    )
                )
        except OSError as e:
            raise ChartError(f"failed to walk folder {folder}: {e}") from e
        self._logger.debug(f"Found {len(dashboards)} dashboards in {folder}")
        return dashboards

    def _walk(self, path: Path):
        # entries in lexical order; symlinked directories below the folder are skipped
        if not path.is_dir():
            if path.name.endswith(".json"):
                yield path
            return
        for entry in sorted(path.iterdir(), key=lambda p: p.name):
            if entry.is_symlink() and entry.is_dir():
                continue
            yield from self._walk(entry)

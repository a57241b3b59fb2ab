from abc import abstractmethod
from base_module.module import Module


class Importer(Module):

    def __init__(self, module_name, chart_path, log_level):
        super().__init__(module_name, log_level)
        self._chart_path = chart_path

    @property
    def chart_path(self):
        return self._chart_path

    @abstractmethod
    def fetch_dashboards(self) -> list:
        pass

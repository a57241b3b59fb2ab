from dataclasses import dataclass
from enum import Enum
from typing import Optional


class ErrorKind(Enum):
    MISSING_FIELD = "MissingField"
    EMPTY_COLLECTION = "EmptyCollection"
    INVALID_VALUE = "InvalidValue"
    DUPLICATE_KEY = "DuplicateKey"
    DECODE_FAILURE = "DecodeFailure"


@dataclass(frozen=True, slots=True)
class ValidationError:
    field: str
    message: str
    kind: ErrorKind = ErrorKind.INVALID_VALUE

    def __str__(self):
        return f"{self.field}: {self.message}"


class DashboardValidationError(Exception):
    PREFIX = "validation failed: "

    def __init__(self, errors: list[ValidationError]):
        self.errors = list(errors)
        super().__init__(self.PREFIX + "; ".join(str(e) for e in self.errors))


class ChartError(Exception):
    pass


class HelmTemplateError(RuntimeError):
    pass


@dataclass(frozen=True, slots=True)
class FileError:
    path: str
    message: str
    field: str = ""
    kind: Optional[ErrorKind] = None

    def csv(self):
        kind = self.kind.value if self.kind else ""
        return f"{self.c(self.path)},{self.c(self.field)},{self.c(kind)},{self.c(self.message)}"

    def c(self, s):
        return str(s).replace(",", "")

    @classmethod
    def csv_header(cls):
        return "File,Field,Kind,Message"


class ErrorManager:
    """Collects per-file failures of a validation run.

    A file counts once in `failed_files` however many field errors it has;
    the CSV report carries one row per field error.
    """

    def __init__(self, logger):
        self._file_errors = []
        self._failed_files = {}
        self._logger = logger

    @property
    def failed_files(self) -> dict:
        return dict(self._failed_files)

    def errors_csv(self) -> str:
        if self._file_errors:
            return "\n".join(
                [FileError.csv_header()] + [x.csv() for x in self._file_errors]
            )
        else:
            return ""

    def add_error(self, path, error: Exception):
        path = str(path)
        self._logger.debug(f"{path}: {error}")
        self._failed_files[path] = str(error)
        if isinstance(error, DashboardValidationError):
            for e in error.errors:
                self._file_errors.append(
                    FileError(path=path, message=e.message, field=e.field, kind=e.kind)
                )
        else:
            self._file_errors.append(
                FileError(path=path, message=str(error), kind=ErrorKind.DECODE_FAILURE)
            )

"""Domain errors and failure typing."""


class BudgetMapError(Exception):
    """Base class for budgetmap failures."""

    error_code = "BUDGETMAP_ERROR"


class ConfigError(BudgetMapError):
    """Raised for invalid or missing configuration."""

    error_code = "CONFIG_ERROR"


class FormatError(BudgetMapError):
    """Raised when a topology document has an unexpected shape."""

    error_code = "FORMAT_ERROR"


class ParseError(BudgetMapError):
    """Raised when a single attribute field cannot be parsed."""

    error_code = "PARSE_ERROR"


class GeometryError(BudgetMapError):
    """Raised when a single feature's geometry cannot be used."""

    error_code = "GEOMETRY_ERROR"


class NetworkError(BudgetMapError):
    """Raised for fetch and submission failures."""

    error_code = "NETWORK_ERROR"


class UnknownCategoryError(BudgetMapError):
    """Raised when an allocation category id is not in the catalog."""

    error_code = "UNKNOWN_CATEGORY"

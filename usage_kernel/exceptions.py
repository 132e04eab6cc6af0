"""
Typed Exception Hierarchy for the Usage Kernel.

===============================================================================
WHEN THE ENGINE RAISES
===============================================================================

Data-quality problems NEVER raise.  Malformed or missing timestamps are
treated as absent, missing rate entries fall through the rate tiers, and
missing assets bill at a zero rate.  The only errors that propagate are
programmer errors and explicit lookups of things that do not exist:

    UsageKernelError (base)
    |
    +-- ReportParameterError
    |   +-- UnsupportedGroupByError
    |   +-- InvalidReportWindowError
    |
    +-- RecordError
    |   +-- InvalidRecordStatusError
    |   +-- UsageRecordNotFoundError
    |
    +-- ConfigurationError
        +-- InvalidConfigurationError

===============================================================================
ERROR CODES - QUICK REFERENCE
===============================================================================

Category        | Code                        | When Raised
----------------|-----------------------------|-----------------------------------------
Report          | UNSUPPORTED_GROUP_BY        | group_by outside asset/project/user/category
                | INVALID_REPORT_WINDOW       | window bound missing or unparsable
----------------|-----------------------------|-----------------------------------------
Record          | INVALID_RECORD_STATUS       | stored status outside the four states
                | USAGE_RECORD_NOT_FOUND      | recompute requested for unknown id
----------------|-----------------------------|-----------------------------------------
Config          | INVALID_CONFIGURATION       | YAML set fails validation

===============================================================================
HANDLING PATTERNS
===============================================================================

Catch by type and read structured attributes, never parse messages:

    try:
        groups = group_cost_lines(lines, group_by, labels)
    except UnsupportedGroupByError as e:
        return {"error": e.code, "group_by": e.group_by}

Silently mis-grouping financial data is worse than failing, so the
report parameters are validated eagerly and never coerced.
"""


class UsageKernelError(Exception):
    """
    Base exception for all usage kernel errors.

    All subclasses carry a `code` class attribute for machine-readable
    error identification.
    """

    code: str = "USAGE_KERNEL_ERROR"


# Report parameter exceptions


class ReportParameterError(UsageKernelError):
    """Base exception for invalid report parameters."""

    code: str = "REPORT_PARAMETER_ERROR"


class UnsupportedGroupByError(ReportParameterError):
    """Group-by dimension is not one of asset, project, user, category."""

    code: str = "UNSUPPORTED_GROUP_BY"

    def __init__(self, group_by: object):
        self.group_by = group_by
        super().__init__(
            f"Unsupported group_by {group_by!r}: "
            "expected one of asset, project, user, category"
        )


class InvalidReportWindowError(ReportParameterError):
    """Reporting window bound is missing or cannot be parsed as an instant."""

    code: str = "INVALID_REPORT_WINDOW"

    def __init__(self, bound: str, value: object):
        self.bound = bound
        self.value = value
        super().__init__(f"Invalid report window {bound}: {value!r}")


# Record exceptions


class RecordError(UsageKernelError):
    """Base exception for occupancy record errors."""

    code: str = "RECORD_ERROR"


class InvalidRecordStatusError(RecordError):
    """Stored status is not one of the four lifecycle states."""

    code: str = "INVALID_RECORD_STATUS"

    def __init__(self, record_id: str, status: object):
        self.record_id = record_id
        self.status = status
        super().__init__(
            f"Usage record {record_id} has invalid stored status {status!r}"
        )


class UsageRecordNotFoundError(RecordError):
    """Usage record with the given id does not exist."""

    code: str = "USAGE_RECORD_NOT_FOUND"

    def __init__(self, record_id: str):
        self.record_id = record_id
        super().__init__(f"Usage record not found: {record_id}")


# Configuration exceptions


class ConfigurationError(UsageKernelError):
    """Base exception for configuration errors."""

    code: str = "CONFIGURATION_ERROR"


class InvalidConfigurationError(ConfigurationError):
    """Configuration set failed validation."""

    code: str = "INVALID_CONFIGURATION"

    def __init__(self, source: str, errors: list[str]):
        self.source = source
        self.errors = tuple(errors)
        joined = "; ".join(errors)
        super().__init__(f"Invalid configuration {source}: {joined}")

"""Shared failure code constants for upload error handling."""

# Input-shape failures: fatal to the whole upload, reported before row work.
WRONG_FILE_TYPE = "WrongFileType"
FILE_TOO_LARGE = "FileTooLarge"
MALFORMED_FILE = "MalformedFile"
EMPTY_FILE = "EmptyFile"
MISSING_REQUIRED_COLUMNS = "MissingRequiredColumns"
DUPLICATE_COLUMNS = "DuplicateColumns"
NO_VALID_ROWS = "NoValidRows"

# Row-level failures: non-fatal, collected alongside accepted rows.
REQUIRED_FIELD_MISSING = "RequiredFieldMissing"
INVALID_NUMBER = "InvalidNumber"

# Store-side failures.
TENANT_PROVISIONING_FAILED = "TenantProvisioningFailed"
DATA_SOURCE_CREATE_FAILED = "DataSourceCreateFailed"
INVALID_TIMESTAMP = "InvalidTimestamp"
BATCH_WRITE_FAILED = "BatchWriteFailed"
CANCELLED = "Cancelled"

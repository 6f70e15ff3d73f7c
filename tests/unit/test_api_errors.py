import pytest

from flame.api.exceptions import ErrorCode, from_transfer_error
from flame.transfer.exceptions import (
    InvalidFormatError,
    MalformedInputError,
    MissingDataError,
    TransactionFailureError,
    TransferError,
)


@pytest.mark.parametrize(
    ("error", "code", "status"),
    [
        (InvalidFormatError("xml", ("json", "html")), ErrorCode.INVALID_FORMAT, 400),
        (MissingDataError(), ErrorCode.MISSING_DATA, 400),
        (MalformedInputError("Invalid JSON format: x"), ErrorCode.MALFORMED_INPUT, 400),
        (TransactionFailureError(OSError("disk full")), ErrorCode.TRANSACTION_FAILED, 500),
        (TransferError("unexpected"), ErrorCode.INTERNAL_ERROR, 500),
    ],
)
def test_transfer_errors_map_to_api_errors(error, code, status):
    api_error = from_transfer_error(error)

    assert api_error.error_code is code
    assert api_error.status_code == status
    assert api_error.message == error.message


def test_transaction_failure_keeps_its_cause():
    cause = OSError("disk full")

    error = TransactionFailureError(cause)

    assert error.cause is cause
    assert error.message == "Import failed and was rolled back: disk full"
    assert error.details == {"cause": "OSError"}

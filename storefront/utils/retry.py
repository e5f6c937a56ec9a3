# storefront/utils/retry.py
from tenacity import (
    Retrying,
    retry,
    retry_if_exception,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)
from botocore.exceptions import BotoCoreError, ClientError

# kody AWS, po których warto spróbować jeszcze raz
_TRANSIENT_CODES = {
    "Throttling",
    "ThrottlingException",
    "ThrottledException",
    "TooManyRequestsException",
    "RequestLimitExceeded",
    "ProvisionedThroughputExceededException",
    "InternalError",
    "InternalFailure",
    "ServiceUnavailable",
}


class VersionConflict(Exception):
    """Wiersz zmienił się między odczytem a zapisem (optimistic locking)."""


class UnprocessedKeys(Exception):
    """DynamoDB nie przetworzył części batcha (zwykle throttling)."""


def is_transient_aws_error(exc: BaseException) -> bool:
    if isinstance(exc, BotoCoreError):
        return True
    if isinstance(exc, ClientError):
        code = exc.response.get("Error", {}).get("Code")
        status = exc.response.get("ResponseMetadata", {}).get("HTTPStatusCode") or 0
        return code in _TRANSIENT_CODES or status >= 500
    return False


def cas_retry():
    # przegrany wyścig na kolumnie version -> ponowny odczyt i ocena warunku
    return retry(
        reraise=True,
        stop=stop_after_attempt(10),
        wait=wait_exponential(multiplier=0.01, min=0.01, max=0.2),
        retry=retry_if_exception_type(VersionConflict),
    )


def publish_retry():
    # błędy stałe (uprawnienia, zły parametr) lecą od razu
    return retry(
        reraise=True,
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=0.3, min=0.3, max=3),
        retry=retry_if_exception(is_transient_aws_error),
    )


def unprocessed_keys_retrying() -> Retrying:
    return Retrying(
        reraise=True,
        stop=stop_after_attempt(5),
        wait=wait_exponential(multiplier=0.05, min=0.05, max=2),
        retry=retry_if_exception_type(UnprocessedKeys),
    )
